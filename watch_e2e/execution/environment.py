"""
Implicit watch environment for the watch e2e harness.

The client reads the watch key and range end from environment variables
when they are not given positionally. Environment variables are process
wide, so the WatchEnvironment class scopes them to one scenario: it sets
exactly what the scenario needs and hands back a cleanup that undoes
exactly that, on every exit path.
"""

import logging
import os
import threading
from typing import Callable, Dict, Optional

from ..config import EnvNames
from ..exceptions import EnvironmentError

logger = logging.getLogger(__name__)

# Variable name -> injector currently holding it
_holders: Dict[str, "WatchEnvironment"] = {}
_holders_lock = threading.Lock()


class WatchEnvironment:
    """Scoped injection of the implicit watch key / range-end variables.

    Usage:
        # As context manager (recommended)
        with WatchEnvironment(env_key="sample") as env:
            # Spawn the watch process...

        # Manual management
        cleanup = WatchEnvironment(env_key="key", env_range_end="key3").apply()
        try:
            # Do work...
        finally:
            cleanup()

    Attributes:
        env_key: Value for the implicit key variable (None = leave unset)
        env_range_end: Value for the implicit range-end variable
        names: Variable names the client reads
    """

    def __init__(
        self,
        env_key: Optional[str] = None,
        env_range_end: Optional[str] = None,
        names: Optional[EnvNames] = None,
    ):
        self.env_key = env_key
        self.env_range_end = env_range_end
        self.names = names or EnvNames()
        self._saved: Dict[str, Optional[str]] = {}
        self._applied = False
        self._cleaned = False

    def _wanted(self) -> Dict[str, str]:
        wanted = {}
        if self.env_key:
            wanted[self.names.key] = self.env_key
        if self.env_range_end:
            wanted[self.names.range_end] = self.env_range_end
        return wanted

    def apply(self) -> Callable[[], None]:
        """Set the variables this scenario needs.

        Returns:
            Idempotent cleanup callable that unsets exactly the variables
            set here (restoring any prior value)

        Raises:
            EnvironmentError: If already applied, or another live injector
                holds one of the variables
        """
        if self._applied:
            raise EnvironmentError("WatchEnvironment already applied")

        wanted = self._wanted()
        with _holders_lock:
            for name in wanted:
                holder = _holders.get(name)
                if holder is not None and holder is not self:
                    raise EnvironmentError(
                        f"{name} is still held by another scenario"
                    )
            for name, value in wanted.items():
                self._saved[name] = os.environ.get(name)
                os.environ[name] = value
                _holders[name] = self
                logger.debug(f"set {name}={value}")

        self._applied = True
        return self.cleanup

    def cleanup(self) -> None:
        """Unset the variables set by apply(). Safe to call repeatedly."""
        if not self._applied or self._cleaned:
            return

        with _holders_lock:
            for name, previous in self._saved.items():
                if previous is None:
                    os.environ.pop(name, None)
                else:
                    os.environ[name] = previous
                if _holders.get(name) is self:
                    del _holders[name]
                logger.debug(f"unset {name}")

        self._cleaned = True

    @property
    def active(self) -> bool:
        return self._applied and not self._cleaned

    def __enter__(self) -> "WatchEnvironment":
        """Context manager entry - sets the variables."""
        self.apply()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - always restores the environment."""
        self.cleanup()
