"""
Compile-Time Resolution Context.

The classifier needs to know, at definition time, which dotted prefixes name
modules and which called functions are macros. That knowledge comes from the
namespace the function was defined in, passed explicitly as a
``ResolutionContext`` rather than read from ambient state, so that the core
stays a pure function of ``(root, map_var, env)``.
"""

import builtins
import types
from typing import Any, Iterable, Mapping, Optional

import libcst as cst

from definject.core.exclusion import ExclusionPolicy
from definject.core.scanners import BoundNameScanner
from definject.core.types import MACRO_MARKER, QualifiedCall


class ResolutionContext:
  """
  Symbol resolution for one function definition.

  Attributes:
      namespace (Mapping[str, Any]): Global namespace of the function.
      local_names (FrozenSet[str]): Names bound inside the function. These
          shadow globals and are never resolved as modules.
      exclusion (ExclusionPolicy): Modules that are never injection targets.
  """

  def __init__(
    self,
    namespace: Mapping[str, Any],
    local_names: Iterable[str] = (),
    exclusion: Optional[ExclusionPolicy] = None,
  ) -> None:
    self.namespace = namespace
    self.local_names = frozenset(local_names)
    self.exclusion = exclusion or ExclusionPolicy()

  @classmethod
  def for_definition(
    cls,
    func_def: cst.FunctionDef,
    namespace: Mapping[str, Any],
    exclusion: Optional[ExclusionPolicy] = None,
  ) -> "ResolutionContext":
    """
    Builds the context for a parsed function definition.

    Args:
        func_def: The function whose body will be rewritten.
        namespace: The globals the function is defined in.
        exclusion: Optional exclusion policy (defaults to the built-in set).

    Returns:
        ResolutionContext: Context with locally bound names collected.
    """
    scanner = BoundNameScanner()
    func_def.visit(scanner)
    return cls(namespace, scanner.local_names, exclusion)

  def lookup(self, name: str) -> Any:
    """Resolves a bare global name (builtins included). Returns None if unbound or local."""
    if name in self.local_names:
      return None
    if name in self.namespace:
      return self.namespace[name]
    return getattr(builtins, name, None)

  def resolve_module(self, expr: cst.BaseExpression) -> Optional[types.ModuleType]:
    """
    Resolves a dotted expression to a module object.

    Every link of the chain must itself be a module: ``os.path`` resolves,
    ``calc.Thing`` (a class) does not.

    Args:
        expr: A Name or Attribute chain.

    Returns:
        Optional[ModuleType]: The module, or None.
    """
    if isinstance(expr, cst.Name):
      obj = self.lookup(expr.value)
    elif isinstance(expr, cst.Attribute):
      parent = self.resolve_module(expr.value)
      if parent is None:
        return None
      obj = getattr(parent, expr.attr.value, None)
    else:
      return None
    return obj if isinstance(obj, types.ModuleType) else None

  def qualify(self, call: cst.Call) -> Optional[QualifiedCall]:
    """
    Resolves ``module.function(...)`` calls.

    Args:
        call: Any call node.

    Returns:
        Optional[QualifiedCall]: The resolved call, or None if the target is not
        an attribute of a module (method calls, unqualified names, ...).
    """
    func = call.func
    if not isinstance(func, cst.Attribute):
      return None
    module = self.resolve_module(func.value)
    if module is None:
      return None
    name = func.attr.value
    return QualifiedCall(node=call, module=module.__name__, function=name, value=getattr(module, name, None))

  def is_excluded(self, module_id: str) -> bool:
    return module_id in self.exclusion

  @staticmethod
  def is_macro(call: QualifiedCall) -> bool:
    """True if the call target was declared compile-time only with ``definject.macro``."""
    return bool(getattr(call.value, MACRO_MARKER, False))
