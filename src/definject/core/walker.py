"""
Tree Walker.

Recursive, depth-first driver of the injection. Each node is classified and
routed:

- excluded calls and opaque nodes are returned as they are;
- injectable calls get their arguments rewritten, then go to the emitter;
- macro-only calls get their arguments rewritten, then go to the macro handler;
- try blocks go to the clause canonicalizer;
- operator chains, match blocks and compound nodes are rebuilt from their
  rewritten children.

The first import statement met aborts the whole walk. Failures travel back as
a ``RewriteResult`` (no exception is raised), so a caller never sees a
partially rewritten tree. Subtrees without changes keep their identity.
"""

import dataclasses
from typing import Any, List, Sequence, Tuple

import libcst as cst

from definject.core import clauses
from definject.core.classifier import classify
from definject.core.context import ResolutionContext
from definject.core.emitter import emit
from definject.core.errors import ModifierError
from definject.core.macros import handle_macro_call, scoped_block_body
from definject.core.types import RewriteResult
from definject.enums import NodeCategory


def rewrite(root: cst.CSTNode, map_var: str, env: ResolutionContext) -> RewriteResult:
  """
  Rewrites every injectable call reachable from ``root``.

  Args:
      root: The function body (or any node) to rewrite.
      map_var: Name of the dependency-map variable threaded into every
          dispatcher call.
      env: Resolution context of the function.

  Returns:
      RewriteResult: The rewritten tree, or the first ``ModifierError``.
  """
  category = classify(root, env)

  if category in (NodeCategory.EXCLUSION_PASS, NodeCategory.OPAQUE):
    return RewriteResult.success(root)

  if category is NodeCategory.TOP_LEVEL_IMPORT:
    return RewriteResult.failure(ModifierError(root))

  if category is NodeCategory.INJECTABLE_CALL:
    result = _rewrite_call_args(root, map_var, env)
    if not result.ok:
      return result
    qualified = env.qualify(root).with_node(result.node)
    return RewriteResult.success(emit(qualified, map_var))

  if category is NodeCategory.MACRO_ONLY_CALL:
    result = _rewrite_call_args(root, map_var, env)
    if not result.ok:
      return result
    qualified = env.qualify(root).with_node(result.node)
    return RewriteResult.success(handle_macro_call(qualified, env))

  if category is NodeCategory.LOCAL_IMPORT:
    # The binding is left alone; only the scoped call is rewritten.
    scope = root.func
    result = _rewrite_call_args(scoped_block_body(root), map_var, env)
    if not result.ok:
      return result
    return RewriteResult.success(_replace(root, {"func": _replace(scope, {"body": result.node})}))

  if category is NodeCategory.TRY_BLOCK:
    return clauses.canonicalize(root, map_var, env)

  if category is NodeCategory.OPERATOR_CHAIN:
    return _rewrite_fields(root, ("left", "right"), map_var, env)

  if category is NodeCategory.CASE_BLOCK:
    return _rewrite_match(root, map_var, env)

  return _rewrite_children(root, map_var, env)


def _rewrite_sequence(nodes: Sequence[cst.CSTNode], map_var: str, env: ResolutionContext) -> Tuple[Any, ...]:
  """
  Rewrites a sequence of sibling nodes, stopping at the first failure.

  Returns:
      Tuple: ``(rewritten_nodes, None)`` on success, ``(None, error)`` on failure.
      ``rewritten_nodes`` is the input sequence itself when nothing changed.
  """
  rewritten: List[cst.CSTNode] = []
  changed = False
  for node in nodes:
    result = rewrite(node, map_var, env)
    if not result.ok:
      return None, result.error
    changed = changed or result.node is not node
    rewritten.append(result.node)
  return (rewritten if changed else nodes), None


def _rewrite_call_args(call: cst.Call, map_var: str, env: ResolutionContext) -> RewriteResult:
  """Rewrites the argument values of a call, keeping its target untouched."""
  return _rewrite_fields(call, ("args",), map_var, env)


def _rewrite_match(block: cst.Match, map_var: str, env: ResolutionContext) -> RewriteResult:
  """Rewrites the subject and each case body. Patterns and guards are left as written."""
  subject = rewrite(block.subject, map_var, env)
  if not subject.ok:
    return subject

  cases: List[cst.MatchCase] = []
  for case in block.cases:
    body = rewrite(case.body, map_var, env)
    if not body.ok:
      return body
    cases.append(_replace(case, {"body": body.node}))

  if all(new is old for new, old in zip(cases, block.cases)):
    cases = block.cases
  return RewriteResult.success(_replace(block, {"subject": subject.node, "cases": cases}))


def _rewrite_fields(node: cst.CSTNode, names: Sequence[str], map_var: str, env: ResolutionContext) -> RewriteResult:
  """Rewrites the named child fields of ``node`` in order."""
  changes = {}
  for name in names:
    value = getattr(node, name)
    if isinstance(value, cst.CSTNode):
      result = rewrite(value, map_var, env)
      if not result.ok:
        return result
      changes[name] = result.node
    elif _is_node_sequence(value):
      rewritten, error = _rewrite_sequence(value, map_var, env)
      if error is not None:
        return RewriteResult.failure(error)
      changes[name] = rewritten
  return RewriteResult.success(_replace(node, changes))


def _rewrite_children(node: cst.CSTNode, map_var: str, env: ResolutionContext) -> RewriteResult:
  """Generic reconstruction: every child field is rewritten, in declaration order."""
  names = [field.name for field in dataclasses.fields(node)]
  return _rewrite_fields(node, names, map_var, env)


def _is_node_sequence(value: Any) -> bool:
  return isinstance(value, (list, tuple)) and bool(value) and all(isinstance(v, cst.CSTNode) for v in value)


def _replace(node: cst.CSTNode, changes: dict) -> cst.CSTNode:
  """``with_changes`` that keeps the original object when no child changed."""
  effective = {name: value for name, value in changes.items() if value is not getattr(node, name)}
  if not effective:
    return node
  return node.with_changes(**effective)
