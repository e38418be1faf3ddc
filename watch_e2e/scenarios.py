"""
Default watch scenario table.

Each scenario puts some keys, watches with a given argument list (or
implicit environment variables standing in for the positional key and
range end) and lists the events expected on the watch output, in order.
"""

from typing import List, Optional

from .models.scenario import ExpectedEvent, PutEvent, ScenarioConfig

ECHO_RECEIVED = ("--", "echo", "watch event received")

_SAMPLE = (PutEvent("sample", "value"),)
_SAMPLE_EVENT = (ExpectedEvent("sample", "value"),)
_SAMPLE_EXEC_EVENT = (ExpectedEvent("sample", "value", "watch event received"),)

_KEYS_123 = (PutEvent("key1", "val1"), PutEvent("key2", "val2"), PutEvent("key3", "val3"))
_KEYS_132 = (PutEvent("key1", "val1"), PutEvent("key3", "val3"), PutEvent("key2", "val2"))
_EVENTS_123 = (
    ExpectedEvent("key1", "val1"),
    ExpectedEvent("key2", "val2"),
    ExpectedEvent("key3", "val3"),
)
_EVENTS_12 = (ExpectedEvent("key1", "val1"), ExpectedEvent("key2", "val2"))


WATCH_SCENARIOS: List[ScenarioConfig] = [
    ScenarioConfig(
        name="watch 1 key",
        puts=_SAMPLE,
        args=("sample", "--rev", "1"),
        expected=_SAMPLE_EVENT,
    ),
    ScenarioConfig(
        name="watch 1 key with env",
        puts=_SAMPLE,
        env_key="sample",
        args=("--rev", "1"),
        expected=_SAMPLE_EVENT,
    ),
    ScenarioConfig(
        name="watch 1 key with exec",
        puts=_SAMPLE,
        args=("sample", "--rev", "1", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch 1 key with exec, with env",
        puts=_SAMPLE,
        env_key="sample",
        args=("--rev", "1", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch 1 key with exec, key after flags",
        puts=_SAMPLE,
        args=("--rev", "1", "sample", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch 1 key with quoted exec argument",
        puts=_SAMPLE,
        args=("--rev", "1", "sample", "--", "echo", '"Hello World!"'),
        expected=(ExpectedEvent("sample", "value", "Hello World!"),),
    ),
    ScenarioConfig(
        name="watch range with exec",
        puts=_SAMPLE,
        args=("sample", "samplx", "--rev", "1", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch range with exec, with env",
        puts=_SAMPLE,
        env_key="sample",
        env_range_end="samplx",
        args=("--rev", "1", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch range with exec, range end after flags",
        puts=_SAMPLE,
        args=("sample", "--rev", "1", "samplx", *ECHO_RECEIVED),
        expected=_SAMPLE_EXEC_EVENT,
    ),
    ScenarioConfig(
        name="watch 3 keys by prefix",
        puts=_KEYS_123,
        args=("key", "--rev", "1", "--prefix"),
        expected=_EVENTS_123,
    ),
    ScenarioConfig(
        name="watch 3 keys by prefix, with env",
        puts=_KEYS_123,
        env_key="key",
        args=("--rev", "1", "--prefix"),
        expected=_EVENTS_123,
    ),
    ScenarioConfig(
        name="watch by revision",
        description="revision_1 predates the start revision and must not show up",
        puts=(
            PutEvent("etcd", "revision_1"),
            PutEvent("etcd", "revision_2"),
            PutEvent("etcd", "revision_3"),
        ),
        args=("etcd", "--rev", "2"),
        expected=(ExpectedEvent("etcd", "revision_2"), ExpectedEvent("etcd", "revision_3")),
    ),
    ScenarioConfig(
        name="watch 3 keys by range",
        description="key3 is the exclusive range end",
        puts=_KEYS_132,
        args=("key", "key3", "--rev", "1"),
        expected=_EVENTS_12,
    ),
    ScenarioConfig(
        name="watch 3 keys by range, with env",
        description="key3 is the exclusive range end",
        puts=_KEYS_132,
        env_key="key",
        env_range_end="key3",
        args=("--rev", "1"),
        expected=_EVENTS_12,
    ),
]


def get_all_scenarios() -> List[ScenarioConfig]:
    return list(WATCH_SCENARIOS)


def get_scenario_by_name(name: str) -> Optional[ScenarioConfig]:
    for scenario in WATCH_SCENARIOS:
        if scenario.name == name:
            return scenario
    return None
