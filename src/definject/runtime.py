"""
Runtime Dispatcher.

Every call rewritten by the injector goes through ``dispatch``. The module is
bound as ``__definject__`` in the globals of injected functions, and is itself
excluded from injection.

The dispatcher is stateless and reentrant: it only reads the dependency map it
is given and performs no caching.
"""

import importlib
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, TypeVar

from definject.core.errors import UnusedDependencyError
from definject.core.types import MACRO_MARKER, STRICT_KEY, DependencyKey

F = TypeVar("F", bound=Callable[..., Any])

DependencyMap = Mapping[Any, Any]


def dispatch(
  key: DependencyKey,
  args: Sequence[Any],
  deps: Optional[DependencyMap],
  kwargs: Optional[Dict[str, Any]] = None,
) -> Any:
  """
  Calls the substitute registered for ``key``, or the real function.

  Args:
      key: ``(module, function, arity)`` of the call site.
      args: Positional arguments, in call-site order.
      deps: The dependency map passed to the injected function (may be None).
      kwargs: Keyword arguments of the call site, if any.

  Returns:
      Any: Whatever the substitute or the real function returns. Exceptions
      propagate unchanged.
  """
  kwargs = kwargs or {}
  if deps:
    substitute = deps.get(key)
    if substitute is not None:
      return substitute(*args, **kwargs)

  module, function, _ = key
  real = getattr(importlib.import_module(module), function)
  return real(*args, **kwargs)


def check_dependencies(deps: Optional[DependencyMap], known_keys: Iterable[DependencyKey], qualname: str = "") -> None:
  """
  Rejects dependency maps holding keys the function never calls.

  A map containing ``{"strict": False}`` skips the check.

  Args:
      deps: The dependency map passed by the caller.
      known_keys: Keys of the dispatcher calls present in the function.
      qualname: Name of the injected function, for the error message.

  Raises:
      UnusedDependencyError: If ``deps`` has unknown keys in strict mode.
  """
  if not deps or deps.get(STRICT_KEY, True) is False:
    return

  known = set(known_keys)
  unused = [key for key in deps if key != STRICT_KEY and key not in known]
  if unused:
    listing = ", ".join(_format_key(key) for key in unused)
    target = f" {qualname}" if qualname else ""
    raise UnusedDependencyError(f"Uncalled dependencies passed to{target}: {listing}")


def macro(func: F) -> F:
  """
  Declares ``func`` compile-time only.

  Calls to a macro are never routed through the dependency map: the injector
  binds the function in a scoped block at the call site and calls it directly.

  Args:
      func: The function to mark.

  Returns:
      The same function, marked.
  """
  setattr(func, MACRO_MARKER, True)
  return func


def _format_key(key: Any) -> str:
  if isinstance(key, tuple) and len(key) == 3:
    module, function, arity = key
    return f"{module}.{function}/{arity}"
  return repr(key)
