"""
Shared Types for the Injection Core.

Defines the substitution key shape, the resolved view of a qualified call and
the result container returned by every rewrite operation.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import libcst as cst

from definject.core.errors import ModifierError

# Name under which the dispatcher module is bound in an injected function's globals.
DISPATCHER_ALIAS = "__definject__"

# Attribute set on functions that must never be routed through the dependency map.
MACRO_MARKER = "__definject_macro__"

# Entry of a dependency map that disables the unused-key check.
STRICT_KEY = "strict"

DependencyKey = Tuple[str, str, int]
"""(module, function, arity) triple identifying one injectable call signature."""


@dataclass(frozen=True)
class QualifiedCall:
  """
  A call node whose target has been resolved to ``module.function``.
  """

  node: cst.Call
  """The call as written (its arguments may already be rewritten)."""

  module: str
  """``__name__`` of the resolved module object."""

  function: str
  """Attribute name used at the call site."""

  value: Any = None
  """The object found at ``module.function`` when the call was resolved."""

  @property
  def positional_args(self) -> Tuple[cst.Arg, ...]:
    return tuple(arg for arg in self.node.args if arg.keyword is None and not arg.star)

  @property
  def keyword_args(self) -> Tuple[cst.Arg, ...]:
    return tuple(arg for arg in self.node.args if arg.keyword is not None)

  @property
  def arity(self) -> int:
    """Static count of positional arguments at the call site."""
    return len(self.positional_args)

  @property
  def key(self) -> DependencyKey:
    return (self.module, self.function, self.arity)

  def with_node(self, node: cst.Call) -> "QualifiedCall":
    """Returns a copy bound to ``node`` (typically the call with rewritten arguments)."""
    return QualifiedCall(node=node, module=self.module, function=self.function, value=self.value)


@dataclass(frozen=True)
class RewriteResult:
  """
  Outcome of a rewrite: either a node or the first ``ModifierError`` met.

  Exactly one of ``node`` and ``error`` is set.
  """

  node: Optional[cst.CSTNode] = None
  error: Optional[ModifierError] = None

  @classmethod
  def success(cls, node: cst.CSTNode) -> "RewriteResult":
    return cls(node=node)

  @classmethod
  def failure(cls, error: ModifierError) -> "RewriteResult":
    return cls(error=error)

  @property
  def ok(self) -> bool:
    return self.error is None

  def unwrap(self) -> cst.CSTNode:
    """
    Returns the rewritten node.

    Raises:
        ModifierError: If the rewrite failed.
    """
    if self.error is not None:
      raise self.error
    return self.node
