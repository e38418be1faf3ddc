"""
Data models for the watch e2e harness.

Public exports:
- Scenario table records (PutEvent, ExpectedEvent, ScenarioConfig)
- Result types (MatchRecord, ScenarioResult, MatrixResult)
- Enums (ResultStatus)
"""

from .scenario import (
    PutEvent,
    ExpectedEvent,
    ScenarioConfig,
    load_scenarios,
    dump_scenarios,
)

from .result import (
    ResultStatus,
    MatchRecord,
    ScenarioResult,
    MatrixResult,
)

__all__ = [
    # Scenario models
    "PutEvent",
    "ExpectedEvent",
    "ScenarioConfig",
    "load_scenarios",
    "dump_scenarios",
    # Result models
    "ResultStatus",
    "MatchRecord",
    "ScenarioResult",
    "MatrixResult",
]
