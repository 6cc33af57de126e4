"""
Tests for the Runtime Dispatcher.
"""

import pytest

from definject.core.errors import UnusedDependencyError
from definject.core.types import MACRO_MARKER
from definject.runtime import check_dependencies, dispatch, macro

SUM = ("sample_app.calc", "sum", 2)


def test_dispatch_calls_real_function_without_deps():
  assert dispatch(SUM, [1, 2], None) == 3
  assert dispatch(SUM, [1, 2], {}) == 3


def test_dispatch_prefers_substitute():
  assert dispatch(SUM, [1, 2], {SUM: lambda a, b: a * b}) == 2


def test_dispatch_ignores_other_keys():
  other = ("sample_app.calc", "sum", 3)
  assert dispatch(SUM, [1, 2], {other: lambda *args: "wrong"}) == 3


def test_dispatch_forwards_keywords():
  assert dispatch(("sample_app.calc", "pow", 1), [3], None, kwargs={"exp": 3}) == 27
  assert dispatch(("sample_app.calc", "pow", 1), [3], {("sample_app.calc", "pow", 1): lambda b, exp: (b, exp)}, {"exp": 1}) == (3, 1)


def test_dispatch_propagates_errors():
  def failing(a, b):
    raise KeyError("substitute failed")

  with pytest.raises(KeyError, match="substitute failed"):
    dispatch(SUM, [1, 2], {SUM: failing})

  with pytest.raises(ValueError):
    dispatch(("sample_app.calc", "to_int", 1), ["x"], None)


def test_dispatch_unknown_module():
  with pytest.raises(ModuleNotFoundError):
    dispatch(("sample_app.nope", "f", 0), [], None)


def test_check_dependencies_accepts_known_keys():
  check_dependencies({SUM: sum}, [SUM])
  check_dependencies(None, [SUM])
  check_dependencies({}, [])


def test_check_dependencies_rejects_unused_keys():
  deps = {SUM: sum, ("sample_app.repo", "all", 1): list}

  with pytest.raises(UnusedDependencyError, match=r"Uncalled dependencies passed to accounts\.total: sample_app\.repo\.all/1"):
    check_dependencies(deps, [SUM], "accounts.total")


def test_check_dependencies_non_strict():
  check_dependencies({("sample_app.repo", "all", 1): list, "strict": False}, [SUM])


def test_strict_true_entry_is_not_a_dependency():
  check_dependencies({SUM: sum, "strict": True}, [SUM])


def test_unused_dependency_error_is_value_error():
  assert issubclass(UnusedDependencyError, ValueError)


def test_macro_marks_function():
  @macro
  def expand(x):
    return x

  assert getattr(expand, MACRO_MARKER) is True
  assert expand(1) == 1
