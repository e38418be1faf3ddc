"""
Result data models for the watch e2e harness.

These capture the outcomes of matrix runs, including:
- Individual token matches observed on the watch output
- Per-scenario outcomes (passed, failed, expected timeout, error)
- The overall result of one matrix run under one run context
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


class ResultStatus(Enum):
    """Outcome of a single scenario."""

    PASSED = "passed"  # Every expected token observed, session stopped cleanly
    FAILED = "failed"  # A token was never observed (mismatch or timeout)
    EXPECTED_TIMEOUT = "expected_timeout"  # Deadline error under dial-timeout 0
    ERROR = "error"  # Spawn, send or stop failed

    @property
    def ok(self) -> bool:
        return self in (ResultStatus.PASSED, ResultStatus.EXPECTED_TIMEOUT)


@dataclass
class MatchRecord:
    """One token observed on the session output."""

    event_index: int
    field: str  # key, value, exec_output or cancel
    token: str

    def __str__(self) -> str:
        return f"#{self.event_index}.{self.field}={self.token!r}"


@dataclass
class ScenarioResult:
    """Result of running one scenario."""

    index: int
    name: str
    status: ResultStatus
    duration_seconds: float = 0.0
    matches: List[MatchRecord] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    failed_event_index: Optional[int] = None
    output_tail: str = ""

    @property
    def passed(self) -> bool:
        return self.status.ok

    def summary(self) -> str:
        """Human-readable summary."""
        status_emoji = {
            ResultStatus.PASSED: "✅",
            ResultStatus.FAILED: "❌",
            ResultStatus.EXPECTED_TIMEOUT: "⏱️",
            ResultStatus.ERROR: "💥",
        }
        emoji = status_emoji.get(self.status, "❓")
        line = f"{emoji} watchTest #{self.index} {self.name}: {self.status.value}"
        if self.error:
            line += f" ({self.error})"
        return line

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "name": self.name,
            "status": self.status.value,
            "duration_seconds": round(self.duration_seconds, 3),
            "matches": [str(m) for m in self.matches],
            "error": self.error,
            "error_type": self.error_type,
            "failed_event_index": self.failed_event_index,
            "output_tail": self.output_tail,
        }


@dataclass
class MatrixResult:
    """Complete result of one matrix run under one run context."""

    context: str
    start_time: datetime
    end_time: Optional[datetime] = None
    results: List[ScenarioResult] = field(default_factory=list)
    aborted: bool = False
    abort_reason: Optional[str] = None

    @property
    def passed(self) -> bool:
        return not self.aborted and all(r.passed for r in self.results)

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def count(self, status: ResultStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    def failures(self) -> List[ScenarioResult]:
        return [r for r in self.results if not r.passed]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "context": self.context,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": round(self.duration_seconds, 3),
            "passed": self.passed,
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "results": [r.to_dict() for r in self.results],
        }
