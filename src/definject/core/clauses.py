"""
Clause Canonicalizer.

Rewrites exception-handling blocks clause set by clause set. The clause sets
of a try block are processed, and reassembled, in one fixed order::

    body -> rescue (``except``) / catch (``except*``) -> else -> finally

Every clause keeps its pattern (exception type and ``as`` name) exactly as
written; only clause bodies go through the walker. Absent clause sets stay
absent.
"""

from typing import List, Optional, Union

import libcst as cst

from definject.core import walker
from definject.core.context import ResolutionContext
from definject.core.types import RewriteResult

TryBlock = Union[cst.Try, cst.TryStar]
Handler = Union[cst.ExceptHandler, cst.ExceptStarHandler]


def canonicalize(block: TryBlock, map_var: str, env: ResolutionContext) -> RewriteResult:
  """
  Rewrites the bodies of every clause of a try block.

  Args:
      block: A ``try`` or ``try``/``except*`` statement.
      map_var: Name of the dependency-map variable.
      env: Resolution context of the function.

  Returns:
      RewriteResult: The rebuilt block, or the first error met in canonical
      clause order.
  """
  body = walker.rewrite(block.body, map_var, env)
  if not body.ok:
    return body

  handlers: List[Handler] = []
  for handler in block.handlers:
    result = _rewrite_clause(handler, map_var, env)
    if not result.ok:
      return result
    handlers.append(result.node)

  orelse = _rewrite_clause(block.orelse, map_var, env)
  if not orelse.ok:
    return orelse

  finalbody = _rewrite_clause(block.finalbody, map_var, env)
  if not finalbody.ok:
    return finalbody

  unchanged = (
    body.node is block.body
    and all(new is old for new, old in zip(handlers, block.handlers))
    and orelse.node is block.orelse
    and finalbody.node is block.finalbody
  )
  if unchanged:
    return RewriteResult.success(block)
  return RewriteResult.success(
    block.with_changes(
      body=body.node,
      handlers=handlers,
      orelse=orelse.node,
      finalbody=finalbody.node,
    )
  )


def _rewrite_clause(
  clause: Optional[Union[Handler, cst.Else, cst.Finally]], map_var: str, env: ResolutionContext
) -> RewriteResult:
  """Rewrites a clause body, leaving its header untouched. ``None`` stays ``None``."""
  if clause is None:
    return RewriteResult.success(None)
  result = walker.rewrite(clause.body, map_var, env)
  if not result.ok:
    return result
  if result.node is clause.body:
    return RewriteResult.success(clause)
  return RewriteResult.success(clause.with_changes(body=result.node))
