"""
Concurrent mutator for the watch e2e harness.

Applies a scenario's puts in a background thread while the watch driver
blocks on the child's output, and signals completion through a one-shot
event so the runner never starts the next scenario with writes still in
flight.
"""

from abc import ABC, abstractmethod
import logging
import os
import subprocess
import threading
from typing import Any, Dict, List, Optional, Sequence

from .arguments import build_put_args
from ..config import WatchRunContext
from ..models.scenario import PutEvent
from ..exceptions import MutationError

logger = logging.getLogger(__name__)


class Putter(ABC):
    """Writes one key/value pair to the store through a separate client."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Apply one write.

        Raises:
            MutationError: If the write fails
        """
        pass


class CtlPutter(Putter):
    """Runs `<ctl> put <key> <value>` and requires OK on stdout."""

    def __init__(self, context: WatchRunContext):
        self.context = context

    def put(self, key: str, value: str) -> None:
        cmd = build_put_args(self.context, key, value)
        timeout = self.context.timeouts.put_timeout

        env = dict(os.environ)
        env.update(self.context.ctl.extra_env)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise MutationError(f"put {key}={value} timed out after {timeout}s")
        except FileNotFoundError as e:
            raise MutationError(f"Command not found: {cmd[0]}: {e}")

        if result.returncode != 0 or "OK" not in result.stdout:
            raise MutationError(
                f"put {key}={value} failed (exit={result.returncode}): "
                f"{result.stderr.strip() or result.stdout.strip()}"
            )
        logger.debug(f"put {key}={value}: OK")


class MockPutter(Putter):
    """Mock putter for testing.

    Records every put; fails on the call whose (0-based) number is fail_at.
    """

    def __init__(self, fail_at: Optional[int] = None, error_message: str = "Mock put error"):
        self.fail_at = fail_at
        self.error_message = error_message
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def put(self, key: str, value: str) -> None:
        with self._lock:
            number = len(self.calls)
            self.calls.append({"key": key, "value": value, "thread": threading.current_thread().name})
        if self.fail_at is not None and number == self.fail_at:
            raise MutationError(self.error_message)

    @property
    def call_count(self) -> int:
        return len(self.calls)


class ConcurrentMutator:
    """Background task applying one scenario's puts in order.

    Usage:
        mutator = ConcurrentMutator(putter, scenario.puts, scenario_index=i)
        mutator.start()
        ...  # drive the watch
        mutator.wait()
        mutator.raise_for_error()

    Attributes:
        done: One-shot event, set once the thread finishes (on every path)
        failure: One-shot event, set as soon as a put fails; the watch
            waiting on the same scenario can be canceled with it
        error: MutationError recorded by the thread, if any
    """

    def __init__(
        self,
        putter: Putter,
        puts: Sequence[PutEvent],
        scenario_index: int = 0,
    ):
        self.putter = putter
        self.puts = list(puts)
        self.scenario_index = scenario_index
        self.done = threading.Event()
        self.failure = threading.Event()
        self.error: Optional[MutationError] = None
        self.applied = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ConcurrentMutator can only be started once")
        self._thread = threading.Thread(
            target=self._run,
            name=f"mutator-{self.scenario_index}",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            for j, put in enumerate(self.puts):
                try:
                    self.putter.put(put.key, put.value)
                except Exception as e:
                    self.error = MutationError(
                        f"watchTest #{self.scenario_index}-{j}: put error ({e})",
                        scenario_index=self.scenario_index,
                        put_index=j,
                    )
                    logger.error(str(self.error))
                    self.failure.set()
                    return
                self.applied += 1
        finally:
            self.done.set()

    @property
    def failed(self) -> bool:
        return self.done.is_set() and self.error is not None

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every put has been applied (or one failed).

        Raises:
            MutationError: If the puts do not finish within timeout
        """
        if not self.done.wait(timeout):
            raise MutationError(
                f"watchTest #{self.scenario_index}: puts did not finish within {timeout}s",
                scenario_index=self.scenario_index,
            )

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
