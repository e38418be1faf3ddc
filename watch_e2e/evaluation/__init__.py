"""
Evaluation layer for the watch e2e harness.

Handles:
- Deadline classification of watch failures
- The zero-dial-timeout exemption
"""

from .classifier import (
    DEADLINE_MARKERS,
    is_deadline_exceeded,
    is_expected_timeout,
    classify,
)

__all__ = [
    "DEADLINE_MARKERS",
    "is_deadline_exceeded",
    "is_expected_timeout",
    "classify",
]
