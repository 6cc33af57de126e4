"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports (``src`` and the ``sample_app`` package).
- Forcing injection on before any sample module is imported.
- Configuration and console isolation between tests.
"""

import io
import os
import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'definject' without installing it
root = Path(__file__).parent
sys.path.insert(0, str(root.parent / "src"))
sys.path.insert(0, str(root))

# Decorators in sample_app run at import time
os.environ["DEFINJECT_ENABLED"] = "1"

from definject import runtime  # noqa: E402
from definject.config import reset_config  # noqa: E402
from definject.core.context import ResolutionContext  # noqa: E402
from definject.utils.console import reset_console, set_console, themed_console  # noqa: E402
from sample_app import calc  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_config():
  """Drops the cached configuration after each test so that overrides do not leak."""
  yield
  reset_config()


@pytest.fixture
def namespace():
  """Globals of a typical injected function."""
  import math
  import operator

  return {
    "calc": calc,
    "math": math,
    "operator": operator,
    "sys": sys,
    "os": os,
    "__definject__": runtime,
  }


@pytest.fixture
def env(namespace):
  """A resolution context with no local bindings."""
  return ResolutionContext(namespace)


@pytest.fixture
def captured_console():
  """
  Redirects the rich console to an in-memory buffer.

  Yields:
      io.StringIO: The buffer receiving all console output.
  """
  buf = io.StringIO()
  set_console(themed_console(file=buf, width=200, force_terminal=False, color_system=None))
  yield buf
  reset_console()
