"""
Tests for the ``@definject`` entry point.

Verifies:
1. Injected functions call through to the real functions without a dependency map.
2. Substitutes in the dependency map replace the matching calls.
3. Strict mode rejects keys the function never calls.
4. Unsupported functions and import statements fail at definition time.
5. Line numbers of the original source are preserved.
"""

import asyncio
import functools
import inspect
import traceback

import pytest

from definject import InjectionError, RuntimeConfig, UnusedDependencyError, definject, inject_function, mock
from definject.core.types import DISPATCHER_ALIAS
from definject.injector import KEYS_ATTR, ORIGINAL_ATTR, SOURCE_ATTR, inject_source, plan_injection
from definject import runtime
from sample_app import accounts, calc, legacy, mailer

GET = ("sample_app.repo", "get", 2)
SEND = ("sample_app.mailer", "send", 1)
WELCOME = ("sample_app.mailer", "welcome", 1)


def test_runs_real_functions_without_deps():
  assert accounts.send_welcome_email(100) == "sent to someone@example.com (normal)"


def test_substitutes_replace_calls():
  sent = []
  deps = {
    GET: lambda kind, user_id: {"email": f"{kind.lower()}{user_id}@example.com"},
    SEND: lambda message: sent.append(message) or "queued",
  }

  assert accounts.send_welcome_email(7, deps=deps) == "queued"
  assert sent == [{"to": "user7@example.com", "subject": "Welcome"}]


def test_keyword_arguments_reach_substitute():
  deps = {GET: lambda kind, user_id: {"email": "a@b.c"}, SEND: lambda message, priority: priority}
  assert accounts.send_urgent(1, deps=deps) == "high"


def test_mock_helper():
  deps = mock({"sample_app.repo.get/2": {"email": "x@example.com"}, (mailer.send, 1): "mocked"})
  assert accounts.send_welcome_email(1, deps=deps) == "mocked"


def test_unused_dependency_is_rejected():
  deps = {GET: lambda *_: {"email": "x"}, ("sample_app.repo", "all", 1): lambda *_: []}

  with pytest.raises(UnusedDependencyError, match="sample_app.repo.all/1"):
    accounts.send_welcome_email(100, deps=deps)


def test_strict_false_in_map():
  deps = {GET: lambda *_: {"email": "x@example.com"}, ("sample_app.repo", "all", 1): list, "strict": False}
  assert accounts.send_welcome_email(100, deps=deps) == "sent to x@example.com (normal)"


def test_strict_false_option():
  assert accounts.lenient_total(1, 2, deps={("sample_app.repo", "all", 1): list}) == 3
  assert not hasattr(accounts.lenient_total, "__wrapped__")


def test_custom_map_var():
  mocks = {("sample_app.calc", "to_int", 1): lambda value: 10}
  assert accounts.total("1", "2") == 3
  assert accounts.total("1", "2", mocks=mocks) == 20
  assert "mocks=None" in str(inspect.signature(accounts.total.__wrapped__))


def test_async_function():
  assert inspect.iscoroutinefunction(accounts.fetch_total)
  assert asyncio.run(accounts.fetch_total("2", "3")) == 5
  assert asyncio.run(accounts.fetch_total("2", "3", deps={("sample_app.calc", "sum", 2): lambda a, b: a - b})) == -1

  with pytest.raises(UnusedDependencyError):
    asyncio.run(accounts.fetch_total("2", "3", deps={GET: dict}))


def test_awaited_dependency_can_be_mocked():
  assert asyncio.run(accounts.load_email(100)) == "someone@example.com"

  deps = mock({"sample_app.repo.fetch/2": {"email": "mocked@example.com"}})
  assert asyncio.run(accounts.load_email(7, deps=deps)) == "mocked@example.com"


def test_macro_calls_are_not_dependencies():
  assert accounts.macro_total(4) == 5
  assert getattr(accounts.macro_total, KEYS_ATTR) == ()

  with pytest.raises(UnusedDependencyError):
    accounts.macro_total(4, deps={("sample_app.calc", "macro_sum", 2): lambda a, b: 0})


def test_try_block_substitution():
  assert accounts.count_users() == 1

  def fail(kind):
    raise LookupError(kind)

  deps = {("sample_app.repo", "all", 1): fail, ("sample_app.calc", "id", 1): lambda value: -1}
  assert accounts.count_users(deps=deps) == -1


def test_match_block_substitution():
  assert accounts.describe("0") == "zero"
  assert accounts.describe("5") == "positive"
  assert accounts.describe("5", deps={("sample_app.calc", "to_int", 1): lambda value: -5, "strict": False}) == "negative"


def test_methods():
  greeter = accounts.Greeter()
  assert greeter.greet(100) == {"to": "someone@example.com", "subject": "Welcome"}
  assert greeter.greet(1, deps={GET: lambda kind, user_id: {"email": "m@example.com"}})["to"] == "m@example.com"


def test_metadata_is_recorded():
  func = accounts.send_welcome_email

  assert func.__name__ == "send_welcome_email"
  assert func.__qualname__ == "send_welcome_email"
  assert getattr(func, KEYS_ATTR) == (GET, SEND, WELCOME)
  assert "deps=None" in getattr(func, SOURCE_ATTR)
  assert getattr(func, ORIGINAL_ATTR).__module__ == "sample_app.accounts"
  assert getattr(accounts, DISPATCHER_ALIAS) is runtime


def test_line_numbers_are_preserved():
  original = getattr(accounts.explode, ORIGINAL_ATTR)
  lines, start = inspect.getsourcelines(original)
  expected = start + next(i for i, line in enumerate(lines) if "calc.to_int" in line)

  with pytest.raises(ValueError) as excinfo:
    accounts.explode()

  frame = next(f for f in traceback.extract_tb(excinfo.tb) if f.name == "explode")
  assert frame.lineno == expected
  assert frame.filename == accounts.__file__


def test_line_numbers_after_multiline_call_are_preserved():
  original = getattr(accounts.explode_after_sum, ORIGINAL_ATTR)
  lines, start = inspect.getsourcelines(original)
  expected = start + next(i for i, line in enumerate(lines) if "raise ValueError" in line)

  with pytest.raises(ValueError, match="3") as excinfo:
    accounts.explode_after_sum(2)

  frame = next(f for f in traceback.extract_tb(excinfo.tb) if f.name == "explode_after_sum")
  assert frame.lineno == expected

  with pytest.raises(ValueError, match="10"):
    accounts.explode_after_sum(2, deps={("sample_app.calc", "sum", 2): lambda a, b: a * 5})


def test_generator_argument_stays_one_argument():
  assert list(accounts.items_of([1, 2, 3])) == [1, 2, 3]
  assert accounts.items_of([1, 2], deps={("sample_app.calc", "id", 1): lambda items: sum(items)}) == 3


def test_plan_injection():
  plan = plan_injection(accounts.send_welcome_email)

  assert plan.keys == (GET, SEND, WELCOME)
  assert plan.filename == accounts.__file__
  assert plan.original.decorators
  assert not plan.injected.decorators
  assert plan.source.startswith("def send_welcome_email(user_id, *, deps=None):")


def test_reinjecting_an_injected_function():
  again = inject_function(accounts.total, RuntimeConfig(enabled=True, strict=False))
  assert again("1", "2") == 3


def test_disabled_config_returns_function_unchanged():
  def plain(a):
    return calc.id(a)

  assert definject(plain, config=RuntimeConfig(enabled=False)) is plain


def test_import_statement_is_rejected():
  with pytest.raises(InjectionError, match="import statements are not allowed") as excinfo:
    inject_function(legacy.with_import)

  lines, start = inspect.getsourcelines(legacy.with_import)
  import_line = start + next(i for i, line in enumerate(lines) if "import os" in line)
  assert f"{legacy.__file__}:{import_line}" in str(excinfo.value)
  assert excinfo.value.cause.source == "import os"


def test_closures_are_rejected():
  factor = 2

  def scaled(a):
    return calc.id(a) * factor

  with pytest.raises(InjectionError, match="free variables"):
    inject_function(scaled)


def test_lambdas_are_rejected():
  with pytest.raises(InjectionError, match="lambda"):
    inject_function(lambda x: x)


def test_outer_decorators_are_rejected():
  @functools.lru_cache
  def cached(a):
    return a

  @functools.wraps(legacy.plain)
  def wrapper(a):
    return legacy.plain(a)

  with pytest.raises(InjectionError):
    inject_function(cached)
  with pytest.raises(InjectionError, match="innermost"):
    inject_function(wrapper)


def test_bound_map_var_is_rejected():
  def uses_deps(deps):
    return deps

  with pytest.raises(InjectionError, match="already bound"):
    inject_function(uses_deps)


def test_invalid_map_var_option():
  with pytest.raises(ValueError):
    definject(legacy.plain, map_var="not valid")


def test_decorator_with_options_only():
  decorator = definject(strict=False, config=RuntimeConfig(enabled=False))
  assert decorator(legacy.plain) is legacy.plain


def test_inject_source():
  source = inject_source(
    """
    @something
    def f(a, *rest, key=1):
      return calc.sum(a, key)
    """,
    {"calc": calc},
  )

  assert source == (
    "def f(a, *rest, key=1, deps=None):\n"
    '  return __definject__.dispatch(("sample_app.calc", "sum", 2), [a, key], deps)\n'
  )


def test_inject_source_requires_function():
  with pytest.raises(InjectionError, match="No function definition"):
    inject_source("x = 1\n", {})
