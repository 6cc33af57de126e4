"""
Error Types.

``ModifierError`` is the only failure produced by the injection core. It is
returned inside a ``RewriteResult`` and never raised during traversal; callers
decide whether to raise it.

``InjectionError`` is raised by the decorator at definition time and
``UnusedDependencyError`` by the runtime strict check.
"""

from typing import Optional

import libcst as cst

from definject.utils.node_diff import capture_node_source


class ModifierError(Exception):
  """
  An unscoped import was found in a function body.

  Unqualified names introduced by such an import could resolve to a target
  other than the one recorded in a substitution key, so the whole rewrite
  is rejected.
  """

  def __init__(self, node: cst.CSTNode, message: Optional[str] = None) -> None:
    self.node = node
    self.source = capture_node_source(node).strip()
    self.message = message or f"import statements are not allowed in an injected function: `{self.source}`"
    super().__init__(self.message)


class InjectionError(Exception):
  """
  Raised when a function cannot be turned into an injectable function.
  """

  def __init__(self, message: str, cause: Optional[ModifierError] = None) -> None:
    self.cause = cause
    super().__init__(message)

  @classmethod
  def from_modifier(cls, error: ModifierError, qualname: str, location: str = "") -> "InjectionError":
    """
    Builds the definition-time error for a rejected rewrite.

    Args:
        error: The failure returned by the walker.
        qualname: Qualified name of the function being injected.
        location: Optional ``file:line`` of the offending construct.

    Returns:
        InjectionError: Error referencing the offending construct.
    """
    where = f" ({location})" if location else ""
    return cls(f"Cannot inject {qualname}{where}: {error.message}", cause=error)


class UnusedDependencyError(ValueError):
  """
  A dependency map passed to an injected function holds keys it never calls.
  """
