"""
Utility Package.

Console/logging helpers and node rendering used by the injector and the CLI.
"""
