"""
Tests for the Exclusion Policy.
"""

import pytest

from definject.core.exclusion import DEFAULT_EXCLUDED_MODULES, ExclusionPolicy


@pytest.mark.parametrize(
  "module_id",
  ["builtins", "sys", "typing", "importlib", "importlib.util", "definject", "definject.runtime"],
)
def test_default_exclusions(module_id):
  assert ExclusionPolicy().is_excluded(module_id)


@pytest.mark.parametrize("module_id", ["os", "sample_app.calc", "definjected", "system", "typing_extensions"])
def test_non_excluded_modules(module_id):
  assert not ExclusionPolicy().is_excluded(module_id)


def test_extra_modules_extend_defaults():
  policy = ExclusionPolicy(extra=["sample_app.repo", " ", "json "])

  assert "sample_app.repo" in policy
  assert "json.decoder" in policy
  assert "sample_app.calc" not in policy
  assert DEFAULT_EXCLUDED_MODULES <= policy.modules
  assert "" not in policy.modules


def test_custom_base():
  policy = ExclusionPolicy(base=["only"])
  assert policy.is_excluded("only.child")
  assert not policy.is_excluded("sys")
