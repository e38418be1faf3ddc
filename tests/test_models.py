"""Tests for scenario and result models, and the built-in scenario table."""

from datetime import datetime, timedelta

import pytest
import yaml

from watch_e2e import (
    ExpectedEvent,
    FakeSession,
    FakeSessionFactory,
    MatchRecord,
    MatrixResult,
    PutEvent,
    ResultStatus,
    ScenarioConfig,
    ScenarioError,
    ScenarioResult,
    WATCH_SCENARIOS,
    WatchMatrixRunner,
    dump_scenarios,
    load_scenarios,
)
from watch_e2e.scenarios import get_scenario_by_name


# ============================================================================
# Scenario models
# ============================================================================


class TestScenarioModels:
    """Test PutEvent, ExpectedEvent and ScenarioConfig."""

    def test_put_event_requires_key(self):
        with pytest.raises(ScenarioError):
            PutEvent("", "value")

    def test_expected_event_tokens_without_exec(self):
        assert ExpectedEvent("k", "v").tokens() == [("key", "k"), ("value", "v")]

    def test_expected_event_tokens_with_exec(self):
        event = ExpectedEvent("k", "v", "ran")
        assert event.tokens() == [("key", "k"), ("value", "v"), ("exec_output", "ran")]

    def test_empty_exec_output_is_skipped(self):
        assert len(ExpectedEvent("k", "v", "").tokens()) == 2

    def test_lists_are_frozen_to_tuples(self):
        scenario = ScenarioConfig(
            puts=[PutEvent("a", "1")],
            args=["a"],
            expected=[ExpectedEvent("a", "1")],
        )
        assert isinstance(scenario.puts, tuple)
        assert isinstance(scenario.args, tuple)
        assert isinstance(scenario.expected, tuple)
        with pytest.raises(AttributeError):
            scenario.args = ("b",)

    def test_no_expected_events_rejected(self):
        with pytest.raises(ScenarioError):
            ScenarioConfig(puts=(), args=("a",), expected=())

    def test_range_end_without_key_rejected(self):
        """A range end alone, with no positional key, is meaningless."""
        with pytest.raises(ScenarioError):
            ScenarioConfig(
                puts=(),
                args=("--rev", "1"),
                expected=(ExpectedEvent("a", "1"),),
                env_range_end="b",
            )

    def test_range_end_with_positional_key_allowed(self):
        scenario = ScenarioConfig(
            puts=(),
            args=("a", "--rev", "1"),
            expected=(ExpectedEvent("a", "1"),),
            env_range_end="b",
        )
        assert scenario.uses_env

    def test_has_exec_command(self):
        scenario = ScenarioConfig(
            puts=(),
            args=("a", "--", "echo", "hi"),
            expected=(ExpectedEvent("a", "1", "hi"),),
        )
        assert scenario.has_exec_command


class TestScenarioLoading:
    """Test YAML loading and dumping of scenario tables."""

    def test_from_dict(self):
        scenario = ScenarioConfig.from_dict({
            "name": "range with env",
            "puts": [{"key": "key1", "value": "val1"}],
            "env_key": "key",
            "env_range_end": "key3",
            "args": ["--rev", 1],
            "expected": [{"key": "key1", "value": "val1"}],
        })
        assert scenario.args == ("--rev", "1")
        assert scenario.env_key == "key"
        assert scenario.puts == (PutEvent("key1", "val1"),)

    def test_from_dict_missing_field(self):
        with pytest.raises(ScenarioError) as exc_info:
            ScenarioConfig.from_dict({"args": ["a"]})
        assert "expected" in str(exc_info.value)

    def test_from_dict_bad_event(self):
        with pytest.raises(ScenarioError):
            ScenarioConfig.from_dict({"args": ["a"], "expected": [{"key": "a"}]})

    def test_numeric_yaml_values_become_text(self, tmp_path):
        """Bare YAML numbers load as strings the watch output can be matched against."""
        path = tmp_path / "numeric.yaml"
        path.write_text(
            "scenarios:\n"
            "  - name: numeric\n"
            "    puts: [{key: etcd, value: 2}]\n"
            "    env_key: 7\n"
            "    args: [--rev, 1]\n"
            "    expected: [{key: etcd, value: 2, exec_output: 3}]\n"
        )
        scenario = load_scenarios(path)[0]

        assert scenario.puts == (PutEvent("etcd", "2"),)
        assert scenario.expected == (ExpectedEvent("etcd", "2", "3"),)
        assert scenario.env_key == "7"
        assert scenario.args == ("--rev", "1")

    def test_numeric_scenario_runs_clean(self, tmp_path, context, putter):
        path = tmp_path / "numeric.yaml"
        path.write_text(
            "args: [etcd]\n"
            "puts: [{key: etcd, value: 2}]\n"
            "expected: [{key: etcd, value: 2}]\n"
        )
        factory = FakeSessionFactory([FakeSession("PUT\r\netcd\r\n2\r\n")])
        result = WatchMatrixRunner(context, factory, putter).run(load_scenarios(path))

        assert result.results[0].status == ResultStatus.PASSED
        assert putter.calls[0]["value"] == "2"

    def test_non_string_event_rejected(self):
        with pytest.raises(ScenarioError):
            PutEvent("etcd", 2)
        with pytest.raises(ScenarioError):
            ExpectedEvent("etcd", "2", exec_output=3)

    def test_non_mapping_event_rejected(self):
        with pytest.raises(ScenarioError):
            ScenarioConfig.from_dict({"args": ["a"], "expected": ["a=1"]})

    def test_load_table_preserves_order(self, tmp_path):
        path = tmp_path / "scenarios.yaml"
        path.write_text(dump_scenarios(WATCH_SCENARIOS))

        loaded = load_scenarios(path)
        assert loaded == WATCH_SCENARIOS

    def test_load_single_scenario(self, tmp_path):
        path = tmp_path / "one.yaml"
        path.write_text(yaml.dump({
            "scenario": {
                "args": ["sample", "--rev", "1"],
                "puts": [{"key": "sample", "value": "value"}],
                "expected": [{"key": "sample", "value": "value"}],
            }
        }))
        assert len(load_scenarios(path)) == 1

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ScenarioError):
            load_scenarios(tmp_path / "nope.yaml")

    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ScenarioError):
            load_scenarios(path)


# ============================================================================
# Built-in table
# ============================================================================


class TestBuiltinTable:
    """The default table reproduces the ctl watch test cases."""

    def test_table_size(self):
        assert len(WATCH_SCENARIOS) == 14

    def test_single_key(self):
        scenario = WATCH_SCENARIOS[0]
        assert scenario.puts == (PutEvent("sample", "value"),)
        assert scenario.args == ("sample", "--rev", "1")
        assert scenario.expected == (ExpectedEvent("sample", "value"),)

    def test_single_key_with_exec(self):
        scenario = WATCH_SCENARIOS[2]
        assert scenario.args == ("sample", "--rev", "1", "--", "echo", "watch event received")
        assert scenario.expected == (ExpectedEvent("sample", "value", "watch event received"),)

    def test_prefix(self):
        scenario = get_scenario_by_name("watch 3 keys by prefix")
        assert scenario.args == ("key", "--rev", "1", "--prefix")
        assert [e.key for e in scenario.expected] == ["key1", "key2", "key3"]

    def test_revision_excludes_first_write(self):
        scenario = get_scenario_by_name("watch by revision")
        assert scenario.args == ("etcd", "--rev", "2")
        assert [e.value for e in scenario.expected] == ["revision_2", "revision_3"]

    def test_range_excludes_range_end(self):
        scenario = get_scenario_by_name("watch 3 keys by range")
        assert [p.key for p in scenario.puts] == ["key1", "key3", "key2"]
        assert scenario.args == ("key", "key3", "--rev", "1")
        assert [e.key for e in scenario.expected] == ["key1", "key2"]

    def test_env_scenarios_omit_positional_args(self):
        """When env stands in for the key, args never start with a positional."""
        for scenario in WATCH_SCENARIOS:
            if scenario.env_key:
                assert scenario.args[0].startswith("-"), scenario.name

    def test_names_are_unique(self):
        names = [s.name for s in WATCH_SCENARIOS]
        assert len(names) == len(set(names))

    def test_unknown_name(self):
        assert get_scenario_by_name("nope") is None


# ============================================================================
# Result models
# ============================================================================


class TestResultModels:
    """Test result status and aggregation."""

    def test_expected_timeout_counts_as_ok(self):
        assert ResultStatus.EXPECTED_TIMEOUT.ok
        assert ResultStatus.PASSED.ok
        assert not ResultStatus.FAILED.ok
        assert not ResultStatus.ERROR.ok

    def test_scenario_result_summary(self):
        result = ScenarioResult(
            index=3, name="watch 1 key", status=ResultStatus.FAILED, error="boom",
        )
        summary = result.summary()
        assert "#3" in summary
        assert "failed" in summary
        assert "boom" in summary

    def test_match_record_str(self):
        assert str(MatchRecord(1, "value", "v")) == "#1.value='v'"

    def test_matrix_result(self):
        start = datetime.now()
        matrix = MatrixResult(
            context="default",
            start_time=start,
            end_time=start + timedelta(seconds=2),
            results=[
                ScenarioResult(0, "a", ResultStatus.PASSED),
                ScenarioResult(1, "b", ResultStatus.EXPECTED_TIMEOUT),
                ScenarioResult(2, "c", ResultStatus.FAILED),
            ],
        )
        assert not matrix.passed
        assert matrix.duration_seconds == 2.0
        assert matrix.count(ResultStatus.PASSED) == 1
        assert [r.index for r in matrix.failures()] == [2]
        assert matrix.to_dict()["results"][1]["status"] == "expected_timeout"

    def test_aborted_matrix_never_passes(self):
        matrix = MatrixResult(context="default", start_time=datetime.now(), aborted=True)
        assert not matrix.passed
