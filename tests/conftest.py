"""Shared fixtures for watch e2e tests."""

import os

import pytest

from watch_e2e import (
    Config,
    CtlConfig,
    EnvNames,
    FakeSession,
    FakeSessionFactory,
    MockPutter,
    TimeoutConfig,
)

WATCH_ENV_NAMES = (EnvNames().key, EnvNames().range_end)


def watch_output(*events, exec_output=None):
    """Render watch events the way the ctl prints them.

    Each event is (key, value); exec_output, if given, follows every event.
    """
    lines = []
    for key, value in events:
        lines += ["PUT", key, value]
        if exec_output:
            lines.append(exec_output)
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture(autouse=True)
def clean_watch_env(monkeypatch):
    """Every test starts and ends without the implicit watch variables."""
    for name in WATCH_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield
    for name in WATCH_ENV_NAMES:
        assert name not in os.environ, f"{name} leaked out of the test"


@pytest.fixture
def config():
    """Config pointing at a fake binary with short timeouts."""
    return Config(
        ctl=CtlConfig(ctl_path="/usr/local/bin/etcdctl", endpoints=["http://127.0.0.1:2379"]),
        timeouts=TimeoutConfig(
            dial_timeout=2,
            expect_timeout=1.0,
            stop_grace=1.0,
            mutation_timeout=5.0,
        ),
    )


@pytest.fixture
def context(config):
    """Scripted-mode run context."""
    return config.context()


@pytest.fixture
def interactive_context(config):
    """Interactive-mode run context."""
    return config.context("interactive")


@pytest.fixture
def timeout_context(config):
    """Run context with the degenerate zero dial timeout."""
    return config.context("timeout")


@pytest.fixture
def putter():
    return MockPutter()


@pytest.fixture
def fake_factory():
    """Factory whose sessions print nothing unless scripted."""
    return FakeSessionFactory()


@pytest.fixture
def sample_session():
    """Session that prints one sample=value event."""
    return FakeSession(watch_output(("sample", "value")))
