"""Tests for deadline classification and the zero dial timeout exemption."""

import pytest

from watch_e2e import (
    MatchError,
    MatchTimeoutError,
    MutationError,
    SpawnError,
    StopError,
)
from watch_e2e.evaluation import classify, is_deadline_exceeded, is_expected_timeout


class TestDeadlineDetection:
    """Test is_deadline_exceeded."""

    def test_match_timeout_is_deadline(self):
        assert is_deadline_exceeded(MatchTimeoutError("waited too long", token="x"))

    @pytest.mark.parametrize("output", [
        "Error: context deadline exceeded",
        "rpc error: code = DeadlineExceeded desc = ...",
        "grpc: timed out trying to connect",
    ])
    def test_deadline_markers_in_output(self, output):
        """A process that died printing a deadline error counts."""
        error = MatchError("Process exited", token="sample", output=output)
        assert is_deadline_exceeded(error)

    def test_marker_in_message(self):
        assert is_deadline_exceeded(StopError("context deadline exceeded"))

    def test_other_mismatch_is_not_deadline(self):
        error = MatchError("Process exited", token="sample", output="Error: permission denied")
        assert not is_deadline_exceeded(error)


class TestExpectedTimeout:
    """The exemption needs both a zero dial timeout and a matching failure."""

    def test_timeout_profile_exempts_match_timeout(self, timeout_context):
        assert is_expected_timeout(timeout_context, MatchTimeoutError("slow", token="x"))

    def test_timeout_profile_exempts_deadline_exit(self, timeout_context):
        error = MatchError("exited", token="x", output="context deadline exceeded")
        assert is_expected_timeout(timeout_context, error)

    def test_timeout_profile_reports_unrelated_mismatch(self, timeout_context):
        error = MatchError("exited", token="x", output="Error: unknown flag")
        assert not is_expected_timeout(timeout_context, error)

    def test_timeout_profile_reports_spawn_error(self, timeout_context):
        """Deadline text outside a matching failure is still a failure."""
        assert not is_expected_timeout(timeout_context, SpawnError("context deadline exceeded"))

    def test_nonzero_dial_timeout_never_exempt(self, context):
        assert not is_expected_timeout(context, MatchTimeoutError("slow", token="x"))


class TestClassify:

    def test_harness_errors_use_class_name(self):
        assert classify(MatchTimeoutError("x")) == "MatchTimeoutError"
        assert classify(MutationError("x")) == "MutationError"

    def test_foreign_errors(self):
        assert classify(ValueError("x")) == "UnexpectedError"
