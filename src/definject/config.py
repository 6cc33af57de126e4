"""
Runtime Configuration Store.

Settings are resolved in increasing priority from defaults, the
``[tool.definject]`` table of the nearest ``pyproject.toml``, the
``DEFINJECT_ENABLED`` environment variable and explicit overrides.
"""

import keyword
import os
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from definject.core.exclusion import ExclusionPolicy

ENV_ENABLED = "DEFINJECT_ENABLED"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def default_enabled() -> bool:
  """
  Injection is on by default only inside a test run.

  Returns:
      bool: True if pytest has been imported in this process.
  """
  return "pytest" in sys.modules


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the injector.
  """

  enabled: bool = Field(default_factory=default_enabled, description="If False, @definject returns functions as is.")
  map_var: str = Field("deps", description="Name of the keyword-only parameter receiving the dependency map.")
  strict: bool = Field(True, description="Reject dependency maps holding keys the function never calls.")
  exclude: List[str] = Field(default_factory=list, description="Extra modules that are never injected.")

  @field_validator("map_var")
  @classmethod
  def validate_map_var(cls, v: str) -> str:
    """
    Ensures the dependency-map parameter name is usable in a signature.

    Args:
        v (str): The candidate name.

    Returns:
        str: The stripped name.

    Raises:
        ValueError: If the name is not an identifier or is a keyword.
    """
    v_clean = v.strip()
    if not v_clean.isidentifier() or keyword.iskeyword(v_clean):
      raise ValueError(f"Invalid dependency map name: '{v_clean}'")
    return v_clean

  @property
  def exclusion(self) -> ExclusionPolicy:
    """
    Builds the exclusion policy: built-in defaults plus configured extras.

    Returns:
        ExclusionPolicy: The effective policy.
    """
    return ExclusionPolicy(extra=self.exclude)

  @classmethod
  def load(
    cls,
    enabled: Optional[bool] = None,
    map_var: Optional[str] = None,
    strict: Optional[bool] = None,
    exclude: Optional[List[str]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and the environment, then applies overrides.

    Args:
        enabled (Optional[bool]): Override for the enabled flag.
        map_var (Optional[str]): Override for the dependency-map parameter name.
        strict (Optional[bool]): Override for strict checking.
        exclude (Optional[List[str]]): Extra excluded modules, added to the TOML list.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    # 1. Enabled: override > environment > TOML > test-run default
    final_enabled = enabled
    if final_enabled is None:
      final_enabled = _env_flag(os.environ.get(ENV_ENABLED))
    if final_enabled is None and "enabled" in toml_config:
      final_enabled = bool(toml_config["enabled"])

    # 2. Parameter name and strictness
    final_map_var = map_var or toml_config.get("map_var", "deps")
    final_strict = strict if strict is not None else toml_config.get("strict", True)

    # 3. Exclusions accumulate
    final_exclude = [*toml_config.get("exclude", []), *(exclude or [])]

    values: Dict[str, Any] = {
      "map_var": final_map_var,
      "strict": final_strict,
      "exclude": final_exclude,
    }
    if final_enabled is not None:
      values["enabled"] = final_enabled
    return cls(**values)


def _env_flag(raw: Optional[str]) -> Optional[bool]:
  if raw is None:
    return None
  value = raw.strip().lower()
  if value in _TRUTHY:
    return True
  if value in _FALSY:
    return False
  raise ValueError(f"{ENV_ENABLED} must be a boolean flag, got '{raw}'")


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the directory and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      with open(toml_path, "rb") as f:
        data = tomllib.load(f)
      return data.get("tool", {}).get("definject", {}), parent

  return {}, None


_CONFIG: Optional[RuntimeConfig] = None


def get_config() -> RuntimeConfig:
  """Returns the process-wide configuration, loading it on first use."""
  global _CONFIG
  if _CONFIG is None:
    _CONFIG = RuntimeConfig.load()
  return _CONFIG


def set_config(config: RuntimeConfig) -> None:
  """Replaces the process-wide configuration."""
  global _CONFIG
  _CONFIG = config


def reset_config() -> None:
  """Drops the cached configuration; the next ``get_config`` reloads it."""
  global _CONFIG
  _CONFIG = None
