"""
Definition-Time Entry Point.

``@definject`` turns a function into one that accepts a dependency map::

    @definject
    def send_welcome_email(user_id):
      user = repo.get(User, user_id)
      return mailer.send(email.welcome(user.email))

is compiled as::

    def send_welcome_email(user_id, *, deps=None):
      user = __definject__.dispatch(("app.repo", "get", 2), [User, user_id], deps)
      return __definject__.dispatch(("app.mailer", "send", 1), [__definject__.dispatch(...)], deps)

so that tests can pass stand-ins for any collaborator::

    send_welcome_email(100, deps={("app.repo", "get", 2): lambda *_: User(email="x@example.com")})

Pipeline:

1.  **Source Recovery**: ``inspect.getsourcelines`` + LibCST parse.
2.  **Resolution Context**: the function's globals and its locally bound names.
3.  **Rewrite**: the core walker; a ``ModifierError`` becomes an ``InjectionError``.
4.  **Signature**: a keyword-only ``deps=None`` parameter is appended.
5.  **Compilation**: the new definition is compiled with the original file name,
    line numbers and ``__future__`` flags, and executed in the original globals.
6.  **Strict Check**: unless disabled, calls are wrapped to reject dependency
    maps holding keys the function never calls.
"""

import __future__
import functools
import inspect
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from definject import runtime
from definject.config import RuntimeConfig, get_config
from definject.core.context import ResolutionContext
from definject.core.errors import InjectionError
from definject.core.exclusion import ExclusionPolicy
from definject.core.scanners import collect_dependency_keys
from definject.core.types import DISPATCHER_ALIAS, DependencyKey
from definject.core.walker import rewrite
from definject.utils.console import log_debug

F = TypeVar("F", bound=Callable[..., Any])

# Attributes recorded on injected functions.
ORIGINAL_ATTR = "__definject_original__"
SOURCE_ATTR = "__definject_source__"
KEYS_ATTR = "__definject_keys__"

_FUTURE_FLAGS = 0
for _feature in __future__.all_feature_names:
  _FUTURE_FLAGS |= getattr(__future__, _feature).compiler_flag


@dataclass(frozen=True)
class InjectionPlan:
  """
  Everything known about one function after the rewrite, before compilation.
  """

  original: cst.FunctionDef
  """The definition as parsed (decorators included)."""

  injected: cst.FunctionDef
  """The rewritten definition, without decorators."""

  keys: Tuple[DependencyKey, ...]
  """Substitution keys called through the dispatcher, in order of appearance."""

  module: cst.Module
  """The parsed source, used to render both definitions with its indentation."""

  filename: str
  def_line: int
  """Line of the ``def`` keyword in ``filename``."""

  @property
  def source(self) -> str:
    """Source text of the rewritten definition."""
    return self.module.code_for_node(self.injected)


def definject(
  func: Optional[F] = None,
  *,
  map_var: Optional[str] = None,
  strict: Optional[bool] = None,
  config: Optional[RuntimeConfig] = None,
) -> Any:
  """
  Makes a function accept a dependency map.

  Usable bare (``@definject``) or with options (``@definject(map_var="mocks")``).
  When injection is disabled by configuration the function is returned unchanged.

  Args:
      func: The function to transform.
      map_var: Name of the keyword-only dependency-map parameter.
      strict: Reject dependency maps holding keys the function never calls.
      config: Configuration to use instead of the process-wide one.

  Returns:
      The injected function, or a decorator when called with options only.

  Raises:
      InjectionError: If the function cannot be injected (import statements in
          its body, free variables, unavailable source, ...).
  """
  if func is None:
    return functools.partial(definject, map_var=map_var, strict=strict, config=config)

  effective = _effective_config(config, map_var, strict)
  if not effective.enabled:
    return func
  return inject_function(func, effective)


def inject_function(func: F, config: Optional[RuntimeConfig] = None) -> F:
  """
  Compiles the injected version of ``func``, regardless of the enabled flag.

  Args:
      func: A plain Python function (or method) defined in a source file.
      config: Configuration to use instead of the process-wide one.

  Returns:
      The injected function.

  Raises:
      InjectionError: If the function cannot be injected.
  """
  config = config or get_config()
  plan = plan_injection(func, config)

  code_text = "\n" * (plan.def_line - 1) + plan.source
  code = compile(code_text, plan.filename, "exec", flags=func.__code__.co_flags & _FUTURE_FLAGS, dont_inherit=True)
  namespace: Dict[str, Any] = {}
  exec(code, func.__globals__, namespace)
  impl = namespace[func.__name__]

  impl.__qualname__ = func.__qualname__
  impl.__doc__ = func.__doc__
  impl.__dict__.update(func.__dict__)
  setattr(impl, ORIGINAL_ATTR, func)
  setattr(impl, SOURCE_ATTR, plan.source)
  setattr(impl, KEYS_ATTR, plan.keys)

  log_debug(f"Injected {func.__qualname__}: {len(plan.keys)} dependencies")

  if not config.strict:
    return impl
  return _with_strict_check(impl, plan.keys, config.map_var)


def plan_injection(func: Callable[..., Any], config: Optional[RuntimeConfig] = None) -> InjectionPlan:
  """
  Parses and rewrites ``func`` without compiling it.

  Args:
      func: The function to analyze. An already injected function is analyzed
          from its original.
      config: Configuration to use instead of the process-wide one.

  Returns:
      InjectionPlan: The parsed and rewritten definitions.

  Raises:
      InjectionError: If the function cannot be injected.
  """
  config = config or get_config()
  func = getattr(func, ORIGINAL_ATTR, func)
  _check_supported(func)

  try:
    lines, start_line = inspect.getsourcelines(func)
    filename = inspect.getsourcefile(func) or func.__code__.co_filename
  except (OSError, TypeError) as e:
    raise InjectionError(f"Cannot inject {func.__qualname__}: source code is not available ({e})") from e

  try:
    module = cst.parse_module(textwrap.dedent("".join(lines)))
  except cst.ParserSyntaxError as e:
    raise InjectionError(f"Cannot inject {func.__qualname__}: source could not be parsed ({e.message})") from e
  wrapper = MetadataWrapper(module, unsafe_skip_copy=True)
  positions = wrapper.resolve(PositionProvider)
  func_def = _find_definition(module, func.__name__)

  func.__globals__.setdefault(DISPATCHER_ALIAS, runtime)
  if func.__globals__[DISPATCHER_ALIAS] is not runtime:
    raise InjectionError(f"Cannot inject {func.__qualname__}: the name {DISPATCHER_ALIAS} is already used")

  env = ResolutionContext.for_definition(func_def, func.__globals__, config.exclusion)
  if config.map_var in env.local_names:
    raise InjectionError(f"Cannot inject {func.__qualname__}: '{config.map_var}' is already bound in the function")

  result = rewrite(func_def.body, config.map_var, env)
  if not result.ok:
    offending = positions.get(result.error.node)
    location = f"{filename}:{start_line + offending.start.line - 1}" if offending else filename
    raise InjectionError.from_modifier(result.error, func.__qualname__, location)

  return InjectionPlan(
    original=func_def,
    injected=_injected_definition(func_def, result.node, config.map_var),
    keys=tuple(collect_dependency_keys(result.node)),
    module=module,
    filename=filename,
    def_line=start_line + positions[func_def].start.line - 1,
  )


def inject_source(
  source: str,
  namespace: Mapping[str, Any],
  map_var: str = "deps",
  exclusion: Optional[ExclusionPolicy] = None,
) -> str:
  """
  Rewrites the first function defined in ``source`` and returns its new source.

  Args:
      source: Python source containing a function definition.
      namespace: Globals used to resolve module names.
      map_var: Name of the dependency-map parameter.
      exclusion: Optional exclusion policy.

  Returns:
      str: Source of the rewritten definition (decorators removed).

  Raises:
      InjectionError: If the source holds no function or the rewrite fails.
  """
  module = cst.parse_module(textwrap.dedent(source))
  func_def = _find_definition(module, None)
  env = ResolutionContext.for_definition(func_def, namespace, exclusion)
  result = rewrite(func_def.body, map_var, env)
  if not result.ok:
    raise InjectionError.from_modifier(result.error, func_def.name.value)
  return module.code_for_node(_injected_definition(func_def, result.node, map_var))


def _effective_config(config: Optional[RuntimeConfig], map_var: Optional[str], strict: Optional[bool]) -> RuntimeConfig:
  base = config or get_config()
  overrides: Dict[str, Any] = {}
  if map_var is not None:
    overrides["map_var"] = map_var
  if strict is not None:
    overrides["strict"] = strict
  if not overrides:
    return base
  # Re-validate so that a bad map_var is rejected here.
  return RuntimeConfig.model_validate({**base.model_dump(), **overrides})


def _check_supported(func: Callable[..., Any]) -> None:
  if not inspect.isfunction(func):
    raise InjectionError(f"Cannot inject {func!r}: not a Python function")
  if func.__name__ == "<lambda>":
    raise InjectionError("Cannot inject a lambda; use a def statement")
  if hasattr(func, "__wrapped__"):
    raise InjectionError(f"Cannot inject {func.__qualname__}: @definject must be the innermost decorator")
  if func.__code__.co_freevars:
    names = ", ".join(func.__code__.co_freevars)
    raise InjectionError(f"Cannot inject {func.__qualname__}: it closes over free variables ({names})")


def _find_definition(module: cst.Module, name: Optional[str]) -> cst.FunctionDef:
  for statement in module.body:
    if isinstance(statement, cst.FunctionDef) and (name is None or statement.name.value == name):
      return statement
  raise InjectionError(f"No function definition{f' named {name}' if name else ''} found in source")


def _injected_definition(func_def: cst.FunctionDef, body: cst.BaseSuite, map_var: str) -> cst.FunctionDef:
  """The rewritten definition: new body, dependency-map parameter, no decorators."""
  return func_def.with_changes(
    body=body,
    params=_append_map_param(func_def.params, map_var),
    decorators=(),
    leading_lines=(),
    lines_after_decorators=(),
  )


def _append_map_param(params: cst.Parameters, map_var: str) -> cst.Parameters:
  """Adds ``*, map_var=None`` (or appends to existing keyword-only parameters)."""
  param = cst.Param(
    name=cst.Name(map_var),
    default=cst.Name("None"),
    equal=cst.AssignEqual(whitespace_before=cst.SimpleWhitespace(""), whitespace_after=cst.SimpleWhitespace("")),
  )
  kwonly: List[cst.Param] = [*params.kwonly_params, param]
  star_arg = params.star_arg
  if star_arg is cst.MaybeSentinel.DEFAULT:
    star_arg = cst.ParamStar()
  return params.with_changes(star_arg=star_arg, kwonly_params=kwonly)


def _with_strict_check(impl: F, keys: Tuple[DependencyKey, ...], map_var: str) -> F:
  qualname = impl.__qualname__

  if inspect.iscoroutinefunction(impl):

    @functools.wraps(impl)
    async def checked_async(*args: Any, **kwargs: Any) -> Any:
      runtime.check_dependencies(kwargs.get(map_var), keys, qualname)
      return await impl(*args, **kwargs)

    return checked_async  # type: ignore[return-value]

  @functools.wraps(impl)
  def checked(*args: Any, **kwargs: Any) -> Any:
    runtime.check_dependencies(kwargs.get(map_var), keys, qualname)
    return impl(*args, **kwargs)

  return checked  # type: ignore[return-value]
