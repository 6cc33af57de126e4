"""
Central Logging and Console Utilities.

This module unifies the application's output mechanism using the Python standard
`logging` library, backed by `rich` for formatting.

It serves two purposes:
1.  **Standard Logging Integration**: Provides the ``definject`` logger and
    adapter functions (`log_success`, `log_warning`, ...) that route to it.
    The library only emits records; `configure_logging` (called by the CLI)
    attaches a `RichHandler`.
2.  **Environment Injection**: Implements a Proxy pattern for the Rich Console,
    so that the output destination (stdout or an in-memory buffer in tests)
    can be swapped at runtime via `set_console`.

Attributes:
    console (_ConsoleProxy): A global, stable reference to the active Rich Console.
    logger (logging.Logger): The package logger.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Custom level between INFO and WARNING
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

logger = logging.getLogger("definject")

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "code": "bold magenta",
  }
)


def themed_console(**kwargs: Any) -> Console:
  """Creates a Rich Console carrying the package theme."""
  return Console(theme=_THEME, **kwargs)


class _ConsoleProxy:
  """
  A Proxy wrapper around `rich.console.Console`.

  All printing operations are forwarded to the 'backend' console, which can be
  swapped at runtime while modules keep importing the same `console` object.

  Attributes:
      _backend (Console): The active Rich Console instance.
      _logging_configured (bool): Whether `configure_logging` has run.
  """

  def __init__(self) -> None:
    self._backend: Console = themed_console()
    self._logging_configured = False

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and, if logging was configured, re-targets it.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    if self._logging_configured:
      self.configure_logging()

  def reset(self) -> None:
    """Resets the proxy to use a fresh standard output console."""
    self.set_backend(themed_console())

  @property
  def backend(self) -> Console:
    return self._backend

  def configure_logging(self, level: int = logging.INFO) -> None:
    """
    Directs the ``definject`` logger to the current backend console.

    Args:
        level (int): Minimum level to emit.
    """
    for handler in list(logger.handlers):
      if isinstance(handler, RichHandler):
        logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    logger.setLevel(level)
    logger.addHandler(rich_handler)
    self._logging_configured = True

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    """Forwards any other attribute to the backend console."""
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Global helper to inject a specific console instance.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Global helper to reset the console to standard output."""
  console.reset()


def configure_logging(level: int = logging.INFO) -> None:
  """Attaches the Rich handler to the package logger."""
  console.configure_logging(level)


def log_debug(msg: str) -> None:
  """
  Logs a diagnostic message.

  Args:
      msg (str): The message content.
  """
  logger.debug(msg)


def log_info(msg: str) -> None:
  """
  Logs an informational message.

  Args:
      msg (str): The message content. Can include rich markup like [bold].
  """
  logger.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  """
  Logs a success message.

  Args:
      msg (str): The message content.
  """
  logger.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  """
  Logs a warning message.

  Args:
      msg (str): The message content.
  """
  logger.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  """
  Logs an error message.

  Args:
      msg (str): The message content.
  """
  logger.error(f"❌ {msg}", extra={"markup": True})
