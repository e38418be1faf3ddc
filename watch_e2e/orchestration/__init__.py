"""
Orchestration layer for the watch e2e harness.

Handles:
- Running the scenario table (matrix runner)
- Validating scenario tables without a cluster (dry runner)
"""

from .runner import WatchMatrixRunner, DryRunner

__all__ = [
    "WatchMatrixRunner",
    "DryRunner",
]
