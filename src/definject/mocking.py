"""
Dependency Map Builder.

``mock`` turns a short-hand table of function references into the dependency
map expected by injected functions, wrapping each value in a function of the
right arity that returns it::

    send_welcome_email(
      100,
      deps=mock({
        "repo.get/2": User(email="someone@example.com"),
        (mailer.send, 1): None,
      }),
    )

Accepted references:

- ``"module.function/arity"`` strings, where ``module`` is the module's
  ``__name__``;
- ``(function, arity)`` tuples;
- bare functions whose arity can be read from their signature (no defaults,
  no ``*args``).

A coroutine function is replaced by a coroutine function, so ``await`` on the
substituted call still works. For string references this is only known when
the module is already imported.
"""

import inspect
import sys
from typing import Any, Callable, Dict, Mapping, Tuple

from definject.core.types import STRICT_KEY, DependencyKey


def mock(table: Mapping[Any, Any]) -> Dict[Any, Any]:
  """
  Builds a dependency map of constant functions.

  Args:
      table: Function references mapped to the value each call should return.
          A ``"strict"`` entry is copied through unchanged.

  Returns:
      Dict: ``{(module, function, arity): const_function}``.

  Raises:
      ValueError: If a reference cannot be turned into a key.
  """
  deps: Dict[Any, Any] = {}
  for ref, value in table.items():
    if ref == STRICT_KEY:
      deps[STRICT_KEY] = value
      continue
    key = function_key(ref)
    deps[key] = make_const_function(key[2], value, is_async=inspect.iscoroutinefunction(_referenced(ref, key)))
  return deps


def function_key(ref: Any) -> DependencyKey:
  """
  Converts a function reference into its substitution key.

  Args:
      ref: ``"module.function/arity"``, ``(function, arity)`` or a function.

  Returns:
      DependencyKey: ``(module, function, arity)``.

  Raises:
      ValueError: If the reference is malformed or the arity is ambiguous.
  """
  if isinstance(ref, str):
    return _parse_reference(ref)

  if isinstance(ref, tuple) and len(ref) == 2 and callable(ref[0]):
    func, arity = ref
    return (_module_of(func), func.__name__, int(arity))

  if callable(ref):
    return (_module_of(ref), ref.__name__, _infer_arity(ref))

  raise ValueError(f"Not a function reference: {ref!r}")


def make_const_function(arity: int, value: Any, is_async: bool = False) -> Callable[..., Any]:
  """
  Returns a function taking exactly ``arity`` positional arguments and returning ``value``.

  Args:
      arity: Number of positional arguments the stand-in accepts.
      value: The value returned on every call.
      is_async: Return a coroutine function, for stand-ins of awaited calls.

  Returns:
      Callable: The constant function.
  """

  def check_arity(args: Tuple[Any, ...]) -> None:
    if len(args) != arity:
      raise TypeError(f"const_function() takes {arity} positional arguments but {len(args)} were given")

  if is_async:

    async def const_coroutine(*args: Any, **kwargs: Any) -> Any:
      check_arity(args)
      return value

    const_coroutine.__qualname__ = f"const_function/{arity}"
    return const_coroutine

  def const_function(*args: Any, **kwargs: Any) -> Any:
    check_arity(args)
    return value

  const_function.__qualname__ = f"const_function/{arity}"
  return const_function


def _referenced(ref: Any, key: DependencyKey) -> Any:
  """The function a reference names, or None for a string naming a module not yet imported."""
  if isinstance(ref, tuple):
    return ref[0]
  if callable(ref):
    return ref
  module = sys.modules.get(key[0])
  return getattr(module, key[1], None) if module is not None else None


def _parse_reference(ref: str) -> DependencyKey:
  path, sep, arity = ref.strip().rpartition("/")
  module, dot, function = path.rpartition(".")
  if not sep or not dot or not module or not function or not arity.isdigit():
    raise ValueError(f"Expected 'module.function/arity', got {ref!r}")
  return (module, function, int(arity))


def _module_of(func: Callable[..., Any]) -> str:
  module = getattr(func, "__module__", None)
  if not module:
    raise ValueError(f"Cannot determine the module of {func!r}; use 'module.function/arity'")
  return module


def _infer_arity(func: Callable[..., Any]) -> int:
  try:
    signature = inspect.signature(func)
  except (TypeError, ValueError) as e:
    raise ValueError(f"Cannot read the signature of {func!r}; pass (function, arity)") from e

  positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
  params = list(signature.parameters.values())
  if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params) or any(
    p.kind in positional and p.default is not inspect.Parameter.empty for p in params
  ):
    raise ValueError(f"Arity of {func.__name__} is ambiguous; pass ({func.__name__}, arity)")
  return sum(1 for p in params if p.kind in positional)
