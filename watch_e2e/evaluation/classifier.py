"""
Error classification for the watch e2e harness.

The timeout profile runs the client with a zero dial timeout, so the
watch is expected to fail with a deadline error. Only that combination
is exempt from being reported; every other failure counts.
"""

from ..config import WatchRunContext
from ..exceptions import MatchError, MatchTimeoutError, WatchE2EError

DEADLINE_MARKERS = (
    "context deadline exceeded",
    "DeadlineExceeded",
    "grpc: timed out trying to connect",
)


def is_deadline_exceeded(error: BaseException) -> bool:
    """True if the error is a deadline expiry.

    A MatchTimeoutError always is; otherwise the error message and any
    captured client output are searched for gRPC deadline markers.
    """
    if isinstance(error, MatchTimeoutError):
        return True

    texts = [str(error)]
    if isinstance(error, MatchError):
        texts.append(error.output)
    return any(marker in text for text in texts for marker in DEADLINE_MARKERS)


def is_expected_timeout(context: WatchRunContext, error: BaseException) -> bool:
    """True if a matching failure is the expected outcome of a zero dial timeout."""
    if context.dial_timeout != 0:
        return False
    if not isinstance(error, MatchError):
        return False
    return is_deadline_exceeded(error)


def classify(error: BaseException) -> str:
    """Short label for reports."""
    if isinstance(error, WatchE2EError):
        return type(error).__name__
    return "UnexpectedError"
