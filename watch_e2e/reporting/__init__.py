"""
Reporting layer for the watch e2e harness.

Handles:
- Report generation across run contexts
- Multiple output formats (JSON, Markdown, summary)
"""

from .reporter import Report, Reporter

__all__ = [
    "Report",
    "Reporter",
]
