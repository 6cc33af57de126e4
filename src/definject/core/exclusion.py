"""
Exclusion Policy.

Modules listed here are never treated as injection targets: language built-ins,
reflection-capable core modules, and definject itself (so that dispatcher calls
emitted by a previous pass are left alone).
"""

from typing import FrozenSet, Iterable

DEFAULT_EXCLUDED_MODULES: FrozenSet[str] = frozenset(
  {
    "builtins",
    "definject",
    "importlib",
    "inspect",
    "operator",
    "sys",
    "types",
    "typing",
  }
)


class ExclusionPolicy:
  """
  Static membership test over module identifiers.

  A module is excluded if it, or any package containing it, is listed:
  excluding ``definject`` also excludes ``definject.runtime``.

  Attributes:
      modules (FrozenSet[str]): The excluded module identifiers.
  """

  def __init__(self, extra: Iterable[str] = (), base: Iterable[str] = DEFAULT_EXCLUDED_MODULES) -> None:
    self.modules: FrozenSet[str] = frozenset(base) | frozenset(m.strip() for m in extra if m.strip())

  def is_excluded(self, module_id: str) -> bool:
    """
    Checks whether calls into ``module_id`` must be left untouched.

    Args:
        module_id: Fully qualified module name (e.g. ``"os.path"``).

    Returns:
        bool: True if the module or one of its parent packages is excluded.
    """
    parts = module_id.split(".")
    return any(".".join(parts[:i]) in self.modules for i in range(1, len(parts) + 1))

  def __contains__(self, module_id: str) -> bool:
    return self.is_excluded(module_id)

  def __repr__(self) -> str:
    return f"ExclusionPolicy({sorted(self.modules)!r})"
