"""
Configuration management for the watch e2e harness.

Supports:
- Programmatic configuration via dataclasses
- YAML file loading
- Environment variable overrides (optionally from a .env file)
- Named profiles mirroring the ctl test matrix (interactive, timeout, TLS)
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Any, Dict, List
import os

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

TLS_MODES = ("none", "client", "auto")


@dataclass
class CtlConfig:
    """Configuration for the client binary under test."""

    ctl_path: str = "etcdctl"
    endpoints: List[str] = field(default_factory=lambda: ["http://127.0.0.1:2379"])
    user: Optional[str] = None  # "name:password"
    extra_env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.ctl_path:
            raise ConfigurationError("ctl_path cannot be empty")
        if isinstance(self.endpoints, str):
            self.endpoints = [e.strip() for e in self.endpoints.split(",") if e.strip()]
        if not self.endpoints:
            raise ConfigurationError("at least one endpoint is required")


@dataclass
class TLSConfig:
    """Client-side TLS flags passed to every ctl invocation."""

    mode: str = "none"  # none, client, auto
    cacert: Optional[str] = None
    cert: Optional[str] = None
    key: Optional[str] = None

    def __post_init__(self):
        if self.mode not in TLS_MODES:
            raise ConfigurationError(
                f"Invalid TLS mode '{self.mode}'. Must be one of: {list(TLS_MODES)}"
            )
        if self.mode == "client" and not (self.cacert and self.cert and self.key):
            raise ConfigurationError("client TLS requires cacert, cert and key")


@dataclass
class TimeoutConfig:
    """Timeouts, all in seconds.

    dial_timeout of 0 is the degenerate value used by the timeout profile.
    """

    dial_timeout: int = 2
    expect_timeout: float = 30.0
    stop_grace: float = 5.0
    put_timeout: float = 10.0
    mutation_timeout: float = 60.0

    def __post_init__(self):
        if self.dial_timeout < 0:
            raise ConfigurationError("dial_timeout cannot be negative")
        if self.expect_timeout <= 0:
            raise ConfigurationError("expect_timeout must be positive")
        if self.stop_grace <= 0:
            raise ConfigurationError("stop_grace must be positive")
        if self.put_timeout <= 0:
            raise ConfigurationError("put_timeout must be positive")
        if self.mutation_timeout <= 0:
            raise ConfigurationError("mutation_timeout must be positive")


@dataclass
class EnvNames:
    """Names of the environment variables the client reads as implicit args."""

    key: str = "IMPLICIT_WATCH_KEY"
    range_end: str = "IMPLICIT_WATCH_RANGE_END"

    def __post_init__(self):
        if not self.key or not self.range_end:
            raise ConfigurationError("environment variable names cannot be empty")
        if self.key == self.range_end:
            raise ConfigurationError("key and range_end variables must differ")


@dataclass(frozen=True)
class WatchRunContext:
    """Read-only, process-wide settings for one matrix run.

    Built from a Config (optionally with a profile applied). The runner
    and drivers only ever read it.
    """

    ctl: CtlConfig
    tls: TLSConfig
    timeouts: TimeoutConfig
    env_names: EnvNames
    interactive: bool = False
    name: str = "default"

    @property
    def dial_timeout(self) -> int:
        return self.timeouts.dial_timeout

    @property
    def expect_timeout(self) -> float:
        return self.timeouts.expect_timeout

    def prefix_args(self) -> List[str]:
        """Command prefix shared by watch and put invocations."""
        args = [
            self.ctl.ctl_path,
            "--endpoints",
            ",".join(self.ctl.endpoints),
            "--dial-timeout",
            f"{self.timeouts.dial_timeout}s",
        ]
        if self.tls.mode == "client":
            args += [
                "--cacert", self.tls.cacert,
                "--cert", self.tls.cert,
                "--key", self.tls.key,
            ]
        elif self.tls.mode == "auto":
            args.append("--insecure-skip-tls-verify")
        if self.ctl.user:
            args += ["--user", self.ctl.user]
        return args

    def describe(self) -> str:
        mode = "interactive" if self.interactive else "scripted"
        return f"{self.name} ({mode}, dial-timeout={self.dial_timeout}s, tls={self.tls.mode})"


# Mirrors the ctl watch test matrix; TLS profiles still need cert paths in config.
BUILTIN_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {},
    "interactive": {"interactive": True},
    "timeout": {"timeouts": {"dial_timeout": 0}},
    "client-tls": {"tls": {"mode": "client"}},
    "interactive-client-tls": {"interactive": True, "tls": {"mode": "client"}},
    "auto-tls": {"tls": {"mode": "auto"}},
}


@dataclass
class Config:
    """Master configuration for the watch e2e harness.

    Example usage:
        # Defaults
        config = Config.default()

        # From file
        config = Config.from_yaml(Path("watch_e2e.yaml"))

        # Programmatic
        config = Config(
            ctl=CtlConfig(ctl_path="bin/etcdctl"),
            timeouts=TimeoutConfig(expect_timeout=10),
        )

        context = config.context("interactive")
    """

    ctl: CtlConfig = field(default_factory=CtlConfig)
    tls: TLSConfig = field(default_factory=TLSConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    env_names: EnvNames = field(default_factory=EnvNames)
    interactive: bool = False
    profiles: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        try:
            return cls(
                ctl=CtlConfig(**data.get("ctl", {})),
                tls=TLSConfig(**data.get("tls", {})),
                timeouts=TimeoutConfig(**data.get("timeouts", {})),
                env_names=EnvNames(**data.get("env_names", {})),
                interactive=bool(data.get("interactive", False)),
                profiles=data.get("profiles", {}) or {},
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration field: {e}")

    @classmethod
    def default(cls) -> "Config":
        """Create configuration with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Config":
        """Create configuration with environment variable overrides.

        A .env file is loaded first (without overriding variables that are
        already set).

        Supported environment variables:
        - WATCH_E2E_CTL_PATH: Path to the client binary
        - WATCH_E2E_ENDPOINTS: Comma separated endpoints
        - WATCH_E2E_DIAL_TIMEOUT: Dial timeout in seconds
        - WATCH_E2E_EXPECT_TIMEOUT: Per-token expect timeout in seconds
        - WATCH_E2E_INTERACTIVE: Interactive mode (true/false)
        - WATCH_E2E_TLS_MODE: none, client or auto
        """
        load_dotenv(dotenv_path)
        config = cls.default()

        if ctl_path := os.environ.get("WATCH_E2E_CTL_PATH"):
            config.ctl.ctl_path = ctl_path
        if endpoints := os.environ.get("WATCH_E2E_ENDPOINTS"):
            config.ctl.endpoints = [e.strip() for e in endpoints.split(",") if e.strip()]

        try:
            if (dial := os.environ.get("WATCH_E2E_DIAL_TIMEOUT")) is not None:
                config.timeouts.dial_timeout = int(dial)
            if expect := os.environ.get("WATCH_E2E_EXPECT_TIMEOUT"):
                config.timeouts.expect_timeout = float(expect)
        except ValueError as e:
            raise ConfigurationError(f"Invalid timeout in environment: {e}")

        if interactive := os.environ.get("WATCH_E2E_INTERACTIVE"):
            config.interactive = interactive.lower() == "true"
        if tls_mode := os.environ.get("WATCH_E2E_TLS_MODE"):
            config.tls.mode = tls_mode

        # Re-run validation on the mutated sections
        config.ctl.__post_init__()
        config.tls.__post_init__()
        config.timeouts.__post_init__()
        return config

    def profile_names(self) -> List[str]:
        """All known profile names (built-in first, then configured)."""
        names = list(BUILTIN_PROFILES)
        names += [n for n in self.profiles if n not in BUILTIN_PROFILES]
        return names

    def context(self, profile: Optional[str] = None) -> WatchRunContext:
        """Build the read-only run context, applying a named profile.

        Raises:
            ConfigurationError: If the profile is unknown or its overrides
                are invalid
        """
        name = profile or "default"
        if name in self.profiles:
            overrides = self.profiles[name] or {}
        elif name in BUILTIN_PROFILES:
            overrides = BUILTIN_PROFILES[name]
        else:
            raise ConfigurationError(
                f"Unknown profile '{name}'. Known profiles: {self.profile_names()}"
            )

        try:
            ctl = replace(self.ctl, **overrides.get("ctl", {}))
            tls = replace(self.tls, **overrides.get("tls", {}))
            timeouts = replace(self.timeouts, **overrides.get("timeouts", {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid override in profile '{name}': {e}")

        return WatchRunContext(
            ctl=ctl,
            tls=tls,
            timeouts=timeouts,
            env_names=self.env_names,
            interactive=bool(overrides.get("interactive", self.interactive)),
            name=name,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (for serialization)."""
        return {
            "ctl": {
                "ctl_path": self.ctl.ctl_path,
                "endpoints": list(self.ctl.endpoints),
                "user": self.ctl.user,
                "extra_env": dict(self.ctl.extra_env),
            },
            "tls": {
                "mode": self.tls.mode,
                "cacert": self.tls.cacert,
                "cert": self.tls.cert,
                "key": self.tls.key,
            },
            "timeouts": {
                "dial_timeout": self.timeouts.dial_timeout,
                "expect_timeout": self.timeouts.expect_timeout,
                "stop_grace": self.timeouts.stop_grace,
                "put_timeout": self.timeouts.put_timeout,
                "mutation_timeout": self.timeouts.mutation_timeout,
            },
            "env_names": {
                "key": self.env_names.key,
                "range_end": self.env_names.range_end,
            },
            "interactive": self.interactive,
            "profiles": self.profiles,
        }

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False)
