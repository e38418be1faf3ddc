"""
Execution layer for the watch e2e harness.

Handles:
- Process sessions (pexpect-backed and fake)
- Argument construction for scripted and interactive modes
- Implicit environment injection
- Concurrent puts
- Watch and permission-denial drivers
"""

from .session import (
    ProcessSession,
    SessionFactory,
    PexpectSession,
    PexpectSessionFactory,
    FakeSession,
    FakeSessionFactory,
)
from .arguments import build_watch_args, build_interactive_line, build_put_args
from .environment import WatchEnvironment
from .mutator import Putter, CtlPutter, MockPutter, ConcurrentMutator
from .driver import WatchDriver, PermissionDeniedDriver, CANCELED_BY_SERVER

__all__ = [
    # Sessions
    "ProcessSession",
    "SessionFactory",
    "PexpectSession",
    "PexpectSessionFactory",
    "FakeSession",
    "FakeSessionFactory",
    # Arguments
    "build_watch_args",
    "build_interactive_line",
    "build_put_args",
    # Environment
    "WatchEnvironment",
    # Mutator
    "Putter",
    "CtlPutter",
    "MockPutter",
    "ConcurrentMutator",
    # Drivers
    "WatchDriver",
    "PermissionDeniedDriver",
    "CANCELED_BY_SERVER",
]
