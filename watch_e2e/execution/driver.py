"""
Watch drivers for the watch e2e harness.

WatchDriver runs one watch invocation through
Spawned -> (InteractiveSend) -> Matching -> Stopped, matching each
expected event's key, value and side-effect output strictly in order.
PermissionDeniedDriver does the same setup but waits for the server's
cancellation message and force-closes the session.

A session that fails part way is force-closed before the error
propagates, so no session outlives its driver call.
"""

import logging
import threading
from typing import List, Optional, Sequence

from .arguments import build_interactive_line, build_watch_args
from .session import ProcessSession, SessionFactory
from ..config import WatchRunContext
from ..models.result import MatchRecord
from ..models.scenario import ExpectedEvent
from ..exceptions import MatchError, SendError, SpawnError, StopError

logger = logging.getLogger(__name__)

CANCELED_BY_SERVER = "watch is canceled by the server"


class _SessionDriver:
    """Spawn and interactive-send steps shared by both drivers."""

    def __init__(self, context: WatchRunContext, factory: SessionFactory):
        self.context = context
        self.factory = factory

    def _open(self, args: Sequence[str]) -> ProcessSession:
        argv = build_watch_args(self.context, args)
        try:
            session = self.factory.spawn(argv)
        except SpawnError:
            raise
        except Exception as e:
            raise SpawnError(f"Failed to spawn {argv[0]}: {e}") from e

        if self.context.interactive:
            line = build_interactive_line(args)
            try:
                session.send(line)
            except SendError:
                self._abandon(session)
                raise
            except Exception as e:
                self._abandon(session)
                raise SendError(f"Failed to send {line!r}: {e}") from e

        return session

    def _abandon(self, session: ProcessSession) -> None:
        """Force-close a session that is being given up on."""
        try:
            session.close()
        except Exception as e:
            logger.warning(f"Failed to close abandoned session: {e}")


class WatchDriver(_SessionDriver):
    """Drives one watch invocation and asserts its ordered output.

    Usage:
        driver = WatchDriver(context, PexpectSessionFactory.from_context(context))
        matches = driver.run(["sample", "--rev", "1"], [ExpectedEvent("sample", "value")])
    """

    def run(
        self,
        args: Sequence[str],
        expected: Sequence[ExpectedEvent],
        cancel: Optional[threading.Event] = None,
    ) -> List[MatchRecord]:
        """Run the watch and match every expected event in order.

        Args:
            args: Watch arguments
            expected: Events to match, in order
            cancel: Event that, once set, abandons matching and
                force-closes the session

        Returns:
            The token matches, in the order they were observed

        Raises:
            SpawnError: If the process cannot be started
            SendError: If the interactive line cannot be sent
            MatchError: If a token never appears (MatchTimeoutError when
                the wait ran out)
            CanceledError: If cancel is set while matching
            StopError: If the session does not stop cleanly
        """
        session = self._open(args)

        try:
            matches = self._match(session, expected, cancel)
        except Exception:
            self._abandon(session)
            raise

        try:
            session.stop()
        except StopError:
            self._abandon(session)
            raise
        except Exception as e:
            self._abandon(session)
            raise StopError(f"Failed to stop watch session: {e}") from e

        return matches

    def _match(
        self,
        session: ProcessSession,
        expected: Sequence[ExpectedEvent],
        cancel: Optional[threading.Event],
    ) -> List[MatchRecord]:
        matches: List[MatchRecord] = []
        for i, event in enumerate(expected):
            for field_name, token in event.tokens():
                try:
                    session.expect(token, cancel)
                except MatchError as e:
                    if e.event_index is None:
                        e.event_index = i
                    raise
                matches.append(MatchRecord(event_index=i, field=field_name, token=token))
        return matches


class PermissionDeniedDriver(_SessionDriver):
    """Expects the server to cancel the watch, then force-closes.

    Graceful shutdown is not attempted: after a server-side cancel the
    client may never finish its shutdown protocol.
    """

    def run(self, args: Sequence[str]) -> MatchRecord:
        """Run the watch and wait for the cancellation message.

        Raises:
            SpawnError, SendError: As for WatchDriver
            MatchError: If the cancellation message never appears
            StopError: If the session cannot be closed
        """
        session = self._open(args)

        try:
            session.expect(CANCELED_BY_SERVER)
        except MatchError as e:
            if e.event_index is None:
                e.event_index = 0
            self._abandon(session)
            raise
        except Exception:
            self._abandon(session)
            raise

        try:
            session.close()
        except StopError:
            raise
        except Exception as e:
            raise StopError(f"Failed to close watch session: {e}") from e

        return MatchRecord(event_index=0, field="cancel", token=CANCELED_BY_SERVER)
