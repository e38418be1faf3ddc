"""
watch-e2e - end-to-end verification of a ctl `watch` command.

This package provides:
- A static scenario table (puts, implicit env args, watch args, expected events)
- Process sessions over pexpect, plus a scriptable fake
- A concurrent mutator that issues puts while the watch is observed
- Watch and permission-denial drivers with ordered output matching
- A matrix runner with scoped environment injection
- Report generation (JSON, Markdown, summary)

Quick start:
    from watch_e2e import Config, WatchMatrixRunner, get_all_scenarios

    context = Config.from_env().context("interactive")
    runner = WatchMatrixRunner(context)
    result = runner.run(get_all_scenarios())

    for failure in result.failures():
        print(failure.summary())

CLI usage:
    python -m watch_e2e run --profile default --profile timeout
"""

__version__ = "0.1.0"

# Core exports
from .config import (
    Config,
    CtlConfig,
    TLSConfig,
    TimeoutConfig,
    EnvNames,
    WatchRunContext,
    BUILTIN_PROFILES,
)
from .exceptions import (
    WatchE2EError,
    ConfigurationError,
    ScenarioError,
    EnvironmentError,
    SpawnError,
    SendError,
    MatchError,
    MatchTimeoutError,
    CanceledError,
    StopError,
    MutationError,
)

# Model exports
from .models import (
    PutEvent,
    ExpectedEvent,
    ScenarioConfig,
    load_scenarios,
    dump_scenarios,
    ResultStatus,
    MatchRecord,
    ScenarioResult,
    MatrixResult,
)

# Execution exports
from .execution import (
    ProcessSession,
    SessionFactory,
    PexpectSessionFactory,
    FakeSession,
    FakeSessionFactory,
    WatchEnvironment,
    ConcurrentMutator,
    CtlPutter,
    MockPutter,
    WatchDriver,
    PermissionDeniedDriver,
)

# Orchestration exports
from .orchestration import WatchMatrixRunner, DryRunner

# Reporting exports
from .reporting import Report, Reporter

from .scenarios import WATCH_SCENARIOS, get_all_scenarios

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "CtlConfig",
    "TLSConfig",
    "TimeoutConfig",
    "EnvNames",
    "WatchRunContext",
    "BUILTIN_PROFILES",
    # Exceptions
    "WatchE2EError",
    "ConfigurationError",
    "ScenarioError",
    "EnvironmentError",
    "SpawnError",
    "SendError",
    "MatchError",
    "MatchTimeoutError",
    "CanceledError",
    "StopError",
    "MutationError",
    # Models
    "PutEvent",
    "ExpectedEvent",
    "ScenarioConfig",
    "load_scenarios",
    "dump_scenarios",
    "ResultStatus",
    "MatchRecord",
    "ScenarioResult",
    "MatrixResult",
    # Execution
    "ProcessSession",
    "SessionFactory",
    "PexpectSessionFactory",
    "FakeSession",
    "FakeSessionFactory",
    "WatchEnvironment",
    "ConcurrentMutator",
    "CtlPutter",
    "MockPutter",
    "WatchDriver",
    "PermissionDeniedDriver",
    # Orchestration
    "WatchMatrixRunner",
    "DryRunner",
    # Reporting
    "Report",
    "Reporter",
    # Scenarios
    "WATCH_SCENARIOS",
    "get_all_scenarios",
]
