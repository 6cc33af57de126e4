"""
Entry point for module execution (``python -m definject``).

This module delegates execution to the CLI handler in ``definject.cli.__main__``.
"""

import sys
from definject.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
