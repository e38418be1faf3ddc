"""
Process sessions for the watch e2e harness.

A session wraps one spawned client process and exposes the small
capability set the drivers need: send a line, wait for a substring,
stop gracefully, close forcibly. The real implementation sits on
pexpect; FakeSession replays scripted output so drivers and the
runner can be tested without real binaries.
"""

from abc import ABC, abstractmethod
import logging
import os
import signal
import threading
import time
from typing import Dict, Iterable, List, Optional, Sequence

import pexpect

from ..config import EnvNames, WatchRunContext
from ..exceptions import (
    CanceledError,
    MatchError,
    MatchTimeoutError,
    SendError,
    SpawnError,
    StopError,
)

logger = logging.getLogger(__name__)

OUTPUT_TAIL_CHARS = 2000

# How often a cancellable expect checks its cancel event
CANCEL_POLL_INTERVAL = 0.1


def _tail(text: str, limit: int = OUTPUT_TAIL_CHARS) -> str:
    return text if len(text) <= limit else text[-limit:]


class ProcessSession(ABC):
    """Abstract interface to a running child process.

    Output is accumulated; every expect() resumes scanning right after
    the previous match, so consecutive expects enforce order.
    """

    @abstractmethod
    def send(self, line: str) -> None:
        """Write raw input to the process.

        Raises:
            SendError: If the write fails
        """
        pass

    @abstractmethod
    def expect(self, substring: str, cancel: Optional[threading.Event] = None) -> str:
        """Block until substring appears after the last match.

        Args:
            substring: Text to wait for
            cancel: Event that, once set, abandons the wait early

        Returns:
            The text consumed up to and including the match

        Raises:
            MatchTimeoutError: If the bounded wait runs out
            MatchError: If the process exits before the substring appears
            CanceledError: If cancel is set before the substring appears
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Terminate gracefully.

        Raises:
            StopError: If the process does not shut down cleanly
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Terminate forcibly.

        Raises:
            StopError: If the process cannot be closed
        """
        pass

    @property
    @abstractmethod
    def output(self) -> str:
        """All output read so far."""
        pass


class SessionFactory(ABC):
    """Creates sessions from an argument vector."""

    @abstractmethod
    def spawn(self, argv: Sequence[str]) -> ProcessSession:
        """Start a process.

        Raises:
            SpawnError: If the process cannot be started
        """
        pass


class PexpectSession(ProcessSession):
    """Session backed by a pexpect child running in a pseudo-terminal."""

    def __init__(
        self,
        child: "pexpect.spawn",
        expect_timeout: float,
        stop_grace: float,
    ):
        self.child = child
        self.expect_timeout = expect_timeout
        self.stop_grace = stop_grace
        self._consumed = ""

    @property
    def output(self) -> str:
        pending = self.child.before if isinstance(self.child.before, str) else ""
        return self._consumed + pending

    def send(self, line: str) -> None:
        logger.debug(f"send: {line!r}")
        try:
            self.child.send(line)
        except (OSError, pexpect.ExceptionPexpect) as e:
            raise SendError(f"Failed to send {line!r}: {e}") from e

    def expect(self, substring: str, cancel: Optional[threading.Event] = None) -> str:
        deadline = time.monotonic() + self.expect_timeout
        while True:
            if cancel is not None and cancel.is_set():
                raise CanceledError(f"Canceled while waiting for {substring!r}")

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise MatchTimeoutError(
                    f"Timed out after {self.expect_timeout}s waiting for {substring!r}",
                    token=substring,
                    output=_tail(self.output),
                )

            # Unmatched output stays buffered between slices
            step = remaining if cancel is None else min(remaining, CANCEL_POLL_INTERVAL)
            try:
                self.child.expect_exact(substring, timeout=step)
                break
            except pexpect.TIMEOUT:
                continue
            except pexpect.EOF:
                raise MatchError(
                    f"Process exited before {substring!r} appeared",
                    token=substring,
                    output=_tail(self.output),
                )

        matched = self.child.before + self.child.after
        self._consumed += matched
        logger.debug(f"matched: {substring!r}")
        return matched

    def stop(self) -> None:
        if not self.child.isalive():
            self.child.close()
            return

        try:
            self.child.kill(signal.SIGINT)
            self.child.expect(pexpect.EOF, timeout=self.stop_grace)
        except pexpect.TIMEOUT:
            self.close()
            raise StopError(
                f"Process {self.child.pid} did not exit within {self.stop_grace}s of SIGINT"
            )
        except (OSError, pexpect.ExceptionPexpect) as e:
            self.close()
            raise StopError(f"Failed to stop process {self.child.pid}: {e}") from e
        self.child.close()

    def close(self) -> None:
        try:
            self.child.close(force=True)
        except (OSError, pexpect.ExceptionPexpect) as e:
            raise StopError(f"Failed to close process {self.child.pid}: {e}") from e


class PexpectSessionFactory(SessionFactory):
    """Spawns real client processes.

    The child inherits os.environ at spawn time, which is how the
    implicit watch variables reach it.
    """

    def __init__(
        self,
        expect_timeout: float = 30.0,
        stop_grace: float = 5.0,
        extra_env: Optional[Dict[str, str]] = None,
    ):
        self.expect_timeout = expect_timeout
        self.stop_grace = stop_grace
        self.extra_env = extra_env or {}

    @classmethod
    def from_context(cls, context: WatchRunContext) -> "PexpectSessionFactory":
        return cls(
            expect_timeout=context.timeouts.expect_timeout,
            stop_grace=context.timeouts.stop_grace,
            extra_env=context.ctl.extra_env,
        )

    def spawn(self, argv: Sequence[str]) -> PexpectSession:
        if not argv:
            raise SpawnError("Cannot spawn an empty command")

        env = dict(os.environ)
        env.update(self.extra_env)
        logger.debug(f"spawn: {' '.join(argv)}")

        try:
            child = pexpect.spawn(
                argv[0],
                list(argv[1:]),
                timeout=self.expect_timeout,
                env=env,
                encoding="utf-8",
                codec_errors="replace",
                echo=False,
            )
        except (OSError, pexpect.ExceptionPexpect) as e:
            raise SpawnError(f"Failed to spawn {argv[0]}: {e}") from e

        return PexpectSession(child, self.expect_timeout, self.stop_grace)


class FakeSession(ProcessSession):
    """Scripted session for testing.

    Output is fixed up front (or fed later with feed()); expect() scans
    it exactly like the real session. Output given as pending_output is
    only released once a line has been sent, which models the
    interactive mode where nothing happens until the command is typed.

    With hang set, an unmatched expect blocks that many seconds (or until
    its cancel event is set) before timing out, like a real session
    waiting on a silent child.
    """

    def __init__(
        self,
        output: str = "",
        pending_output: str = "",
        eof: bool = False,
        hang: float = 0.0,
        send_error: Optional[Exception] = None,
        stop_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ):
        self._buffer = output
        self._pending = pending_output
        self._cursor = 0
        self.eof = eof
        self.hang = hang
        self.send_error = send_error
        self.stop_error = stop_error
        self.close_error = close_error

        # Track calls for assertions
        self.sent: List[str] = []
        self.expected: List[str] = []
        self.stopped = False
        self.closed = False

    @property
    def output(self) -> str:
        return self._buffer

    @property
    def terminated(self) -> bool:
        return self.stopped or self.closed

    def feed(self, text: str) -> None:
        self._buffer += text

    def send(self, line: str) -> None:
        if self.send_error is not None:
            raise SendError(str(self.send_error)) from self.send_error
        self.sent.append(line)
        if self._pending:
            self._buffer += self._pending
            self._pending = ""

    def expect(self, substring: str, cancel: Optional[threading.Event] = None) -> str:
        self.expected.append(substring)
        idx = self._buffer.find(substring, self._cursor)
        if idx < 0:
            wait = 0.0 if self.eof else self.hang
            if cancel is not None:
                if cancel.wait(wait):
                    raise CanceledError(f"Canceled while waiting for {substring!r}")
            elif wait:
                time.sleep(wait)
            if self.eof:
                raise MatchError(
                    f"Process exited before {substring!r} appeared",
                    token=substring,
                    output=_tail(self._buffer),
                )
            raise MatchTimeoutError(
                f"Timed out waiting for {substring!r}",
                token=substring,
                output=_tail(self._buffer),
            )
        end = idx + len(substring)
        matched = self._buffer[self._cursor:end]
        self._cursor = end
        return matched

    def stop(self) -> None:
        if self.stop_error is not None:
            raise StopError(str(self.stop_error)) from self.stop_error
        self.stopped = True

    def close(self) -> None:
        if self.close_error is not None:
            raise StopError(str(self.close_error)) from self.close_error
        self.closed = True


class FakeSessionFactory(SessionFactory):
    """Factory handing out FakeSessions.

    Sessions are taken from the given list in order; once it is exhausted
    each spawn builds a FakeSession from default_output. Every spawn
    records the argv and a snapshot of the implicit watch variables.
    """

    def __init__(
        self,
        sessions: Optional[Iterable[FakeSession]] = None,
        default_output: str = "",
        spawn_error: Optional[Exception] = None,
        env_names: Optional[EnvNames] = None,
    ):
        self._queue = list(sessions or [])
        self.default_output = default_output
        self.spawn_error = spawn_error
        self.env_names = env_names or EnvNames()

        self.spawned: List[List[str]] = []
        self.env_snapshots: List[Dict[str, Optional[str]]] = []
        self.sessions: List[FakeSession] = []

    def spawn(self, argv: Sequence[str]) -> FakeSession:
        self.spawned.append(list(argv))
        self.env_snapshots.append({
            name: os.environ.get(name)
            for name in (self.env_names.key, self.env_names.range_end)
        })

        if self.spawn_error is not None:
            raise SpawnError(str(self.spawn_error)) from self.spawn_error

        session = self._queue.pop(0) if self._queue else FakeSession(self.default_output)
        self.sessions.append(session)
        return session

    @property
    def spawn_count(self) -> int:
        return len(self.spawned)
