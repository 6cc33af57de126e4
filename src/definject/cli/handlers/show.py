"""
Inspection Command Handlers.

Implements ``definject show`` and ``definject keys``. Both take a
``module:qualname`` target, import it, and run the injector in planning mode
(nothing is compiled, the target module is left unchanged apart from the
dispatcher alias).
"""

import importlib
from typing import Any, Callable, Optional

from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from definject.config import RuntimeConfig
from definject.core.errors import InjectionError
from definject.injector import ORIGINAL_ATTR, InjectionPlan, plan_injection
from definject.utils.console import console, log_error, log_info, log_success, log_warning
from definject.utils.node_diff import diff_nodes


def resolve_target(target: str) -> Callable[..., Any]:
  """
  Imports ``module:qualname`` and returns the object it names.

  Args:
      target: e.g. ``"app.accounts:send_welcome_email"`` or ``"app.models:User.save"``.

  Returns:
      The referenced object.

  Raises:
      ValueError: If the target is malformed or does not exist.
  """
  module_name, sep, qualname = target.partition(":")
  if not sep or not module_name or not qualname:
    raise ValueError(f"Expected 'module:qualname', got '{target}'")

  try:
    obj: Any = importlib.import_module(module_name)
  except ImportError as e:
    raise ValueError(f"Cannot import module '{module_name}': {e}") from e

  for part in qualname.split("."):
    try:
      obj = getattr(obj, part)
    except AttributeError as e:
      raise ValueError(f"'{module_name}' has no attribute '{qualname}'") from e
  return obj


def _load_plan(target: str, map_var: Optional[str]) -> Optional[InjectionPlan]:
  try:
    func = resolve_target(target)
    if not hasattr(func, ORIGINAL_ATTR):
      log_warning(f"[code]{target}[/code] is not decorated with @definject; showing the rewrite it would get")
    config = RuntimeConfig.load(enabled=True, map_var=map_var)
    return plan_injection(func, config)
  except (ValueError, InjectionError) as e:
    log_error(escape(str(e)))
    return None


def handle_show(target: str, map_var: Optional[str] = None, diff: bool = False) -> int:
  """
  Prints the rewritten source of a function.

  Args:
      target: ``module:qualname`` of the function.
      map_var: Override for the dependency-map parameter name.
      diff: Also print the original definition.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  plan = _load_plan(target, map_var)
  if plan is None:
    return 1

  before, after, changed = diff_nodes(plan.original, plan.injected, plan.module)
  if diff:
    console.print(f"[path]{plan.filename}:{plan.def_line}[/path] (original)")
    console.print(Syntax(before.strip("\n"), "python"))
    console.print("[path]injected[/path]")
  console.print(Syntax(after, "python"))

  if not plan.keys:
    log_info(f"No injectable calls in [code]{target}[/code]")
  elif changed:
    log_success(f"{len(plan.keys)} dispatcher calls in [code]{target}[/code]")
  return 0


def handle_keys(target: str, map_var: Optional[str] = None) -> int:
  """
  Prints the substitution keys a function accepts.

  Args:
      target: ``module:qualname`` of the function.
      map_var: Override for the dependency-map parameter name.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  plan = _load_plan(target, map_var)
  if plan is None:
    return 1

  table = Table(title=f"Dependencies of {target}")
  table.add_column("Module", style="cyan")
  table.add_column("Function", style="magenta")
  table.add_column("Arity", justify="right")
  table.add_column("Reference", style="green")

  for module, function, arity in plan.keys:
    table.add_row(module, function, str(arity), f"{module}.{function}/{arity}")

  console.print(table)
  return 0
