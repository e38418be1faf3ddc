"""
Exception hierarchy for the watch e2e harness.

All exceptions inherit from WatchE2EError for easy catching.
"""

from typing import Optional


class WatchE2EError(Exception):
    """Base exception for the watch e2e harness.

    All other exceptions in this module inherit from this,
    allowing callers to catch any harness error with a single except.
    """
    pass


class ConfigurationError(WatchE2EError):
    """Error in configuration.

    Raised when:
    - Config file not found
    - Config validation fails (negative timeouts, unknown TLS mode)
    - Unknown profile requested
    """
    pass


class ScenarioError(WatchE2EError):
    """Error loading or validating a scenario.

    Raised when:
    - YAML parsing fails
    - Required fields are missing
    - A put or expected event has an empty key/value
    """
    pass


class EnvironmentError(WatchE2EError):
    """Error injecting the implicit watch environment variables.

    Raised when:
    - An injector is applied twice
    - Two scenarios try to hold the same variables at once
    """
    pass


class SpawnError(WatchE2EError):
    """The watched client process could not be started."""
    pass


class SendError(WatchE2EError):
    """Sending the interactive command line to the session failed."""
    pass


class MatchError(WatchE2EError):
    """An expected token was never observed in the session output.

    Attributes:
        token: The substring being waited for
        event_index: Index of the expected event being matched (if known)
        output: Tail of the output captured before the failure
    """

    def __init__(
        self,
        message: str,
        token: str = "",
        event_index: Optional[int] = None,
        output: str = "",
    ):
        super().__init__(message)
        self.token = token
        self.event_index = event_index
        self.output = output


class MatchTimeoutError(MatchError):
    """The bounded wait for an expected token ran out.

    At this layer a timeout is indistinguishable from a mismatch; the
    separate type lets callers classify deadline expiry structurally.
    """
    pass


class CanceledError(WatchE2EError):
    """The watch was abandoned before its output was matched.

    Raised when:
    - A concurrent put failed while the session was waiting for output
    """
    pass


class StopError(WatchE2EError):
    """Terminating the session (gracefully or forcibly) failed."""
    pass


class MutationError(WatchE2EError):
    """A put issued by the concurrent mutator failed.

    Always fatal: it aborts the whole matrix run, not just the scenario.

    Attributes:
        scenario_index: Index of the scenario whose put failed
        put_index: Index of the failing put within the scenario
    """

    def __init__(
        self,
        message: str,
        scenario_index: Optional[int] = None,
        put_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.scenario_index = scenario_index
        self.put_index = put_index
