"""
CLI Subpackage.

Inspection commands for injected functions.

Modules:
    - ``__main__``: The argparse definition and dispatcher.
    - ``handlers/*``: Implementation of the ``show`` and ``keys`` commands.
"""
