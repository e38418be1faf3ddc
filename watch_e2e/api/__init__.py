"""
API layer for the watch e2e harness.

External interfaces:
- CLI (command line interface)
- SDK (the package-level exports)
"""

from .cli import main as cli_main

__all__ = [
    "cli_main",
]
