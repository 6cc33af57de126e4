"""
Main Entry Point for the definject CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `definject.cli.handlers`.
"""

import argparse
import logging
import sys
from typing import List, Optional

from definject import __version__
from definject.cli import handlers
from definject.utils.console import configure_logging


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="definject: inspect functions rewritten for dependency injection")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: SHOW ---
  cmd_show = subparsers.add_parser("show", help="Print the injected source of a function")
  cmd_show.add_argument("target", help="Function to inspect, as module:qualname")
  cmd_show.add_argument("--map-var", default=None, help="Name of the dependency-map parameter (default: from toml)")
  cmd_show.add_argument("--diff", action="store_true", help="Print the original definition too")

  # --- Command: KEYS ---
  cmd_keys = subparsers.add_parser("keys", help="List the dependency keys a function accepts")
  cmd_keys.add_argument("target", help="Function to inspect, as module:qualname")
  cmd_keys.add_argument("--map-var", default=None, help="Name of the dependency-map parameter (default: from toml)")

  args = parser.parse_args(argv)
  configure_logging(logging.DEBUG if args.verbose else logging.INFO)

  if args.command == "show":
    return handlers.handle_show(args.target, args.map_var, args.diff)

  elif args.command == "keys":
    return handlers.handle_keys(args.target, args.map_var)

  return 0


if __name__ == "__main__":
  sys.exit(main())
