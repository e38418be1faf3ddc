"""
Integration tests for the pexpect-backed session.

These spawn small shell commands in a pseudo-terminal; skipped where
/bin/sh is not available.
"""

import os
import shutil
import threading
import time

import pytest

from watch_e2e import (
    CanceledError,
    MatchError,
    MatchTimeoutError,
    SpawnError,
    WatchEnvironment,
)
from watch_e2e.execution import PexpectSessionFactory

pytestmark = pytest.mark.skipif(
    shutil.which("sh") is None, reason="requires a POSIX shell"
)


@pytest.fixture
def factory():
    return PexpectSessionFactory(expect_timeout=5.0, stop_grace=2.0)


class TestPexpectSession:

    def test_ordered_expect(self, factory):
        session = factory.spawn(["sh", "-c", "printf 'PUT\\nsample\\nvalue\\n'; sleep 5"])
        try:
            session.expect("sample")
            session.expect("value")
            assert "sample" in session.output
        finally:
            session.close()

    def test_eof_before_match(self, factory):
        session = factory.spawn(["sh", "-c", "echo 'Error: context deadline exceeded'"])
        try:
            with pytest.raises(MatchError) as exc_info:
                session.expect("sample")
            assert not isinstance(exc_info.value, MatchTimeoutError)
            assert "deadline" in exc_info.value.output
        finally:
            session.close()

    def test_timeout(self):
        factory = PexpectSessionFactory(expect_timeout=0.2, stop_grace=2.0)
        session = factory.spawn(["sh", "-c", "sleep 5"])
        try:
            with pytest.raises(MatchTimeoutError):
                session.expect("never")
        finally:
            session.close()

    def test_send_line(self, factory):
        session = factory.spawn(["sh", "-c", "read line; echo got:$line; sleep 5"])
        try:
            session.send("watch sample\r")
            session.expect("got:watch sample")
        finally:
            session.close()

    def test_graceful_stop(self, factory):
        session = factory.spawn(["sh", "-c", "echo ready; exec sleep 30"])
        session.expect("ready")
        session.stop()
        assert not session.child.isalive()

    def test_child_sees_injected_env(self, factory):
        with WatchEnvironment(env_key="sample"):
            session = factory.spawn(["sh", "-c", "echo key=$IMPLICIT_WATCH_KEY; sleep 5"])
        try:
            session.expect("key=sample")
        finally:
            session.close()
        assert "IMPLICIT_WATCH_KEY" not in os.environ

    def test_extra_env(self):
        factory = PexpectSessionFactory(expect_timeout=5.0, extra_env={"ETCDCTL_API": "3"})
        session = factory.spawn(["sh", "-c", "echo api=$ETCDCTL_API; sleep 5"])
        try:
            session.expect("api=3")
        finally:
            session.close()

    def test_missing_binary(self, factory):
        with pytest.raises(SpawnError):
            factory.spawn(["/nonexistent/etcdctl", "watch"])

    def test_empty_argv(self, factory):
        with pytest.raises(SpawnError):
            factory.spawn([])

    def test_cancel_interrupts_wait(self):
        factory = PexpectSessionFactory(expect_timeout=10.0, stop_grace=2.0)
        session = factory.spawn(["sh", "-c", "sleep 30"])
        cancel = threading.Event()
        timer = threading.Timer(0.2, cancel.set)
        timer.start()
        try:
            start = time.monotonic()
            with pytest.raises(CanceledError):
                session.expect("never", cancel)
            assert time.monotonic() - start < 5.0
        finally:
            timer.cancel()
            session.close()

    def test_cancellable_expect_sees_late_output(self, factory):
        """Output arriving across poll slices is still matched."""
        session = factory.spawn(["sh", "-c", "sleep 0.5; echo late; sleep 5"])
        try:
            session.expect("late", threading.Event())
        finally:
            session.close()
