"""
Scenario data models for the watch e2e harness.

A ScenarioConfig defines:
- Which puts the concurrent mutator applies (in order)
- Which implicit environment variables stand in for positional args
- The watch arguments (argv in scripted mode, typed line in interactive mode)
- The ordered watch events expected on the child's output
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Dict, Any, Tuple

import yaml

from ..exceptions import ScenarioError


def _require_str(owner: str, **fields: Any) -> None:
    for name, value in fields.items():
        if not isinstance(value, str):
            raise ScenarioError(
                f"{owner} {name} must be a string, got {type(value).__name__}"
            )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _stringify(entry: Dict[str, Any]) -> Dict[str, Any]:
    """YAML turns bare numbers into ints; event fields are always text."""
    if not isinstance(entry, dict):
        raise ScenarioError(f"Expected a mapping, got {entry!r}")
    return {k: v if v is None else str(v) for k, v in entry.items()}


@dataclass(frozen=True)
class PutEvent:
    """One mutation applied through a separate client invocation."""

    key: str
    value: str

    def __post_init__(self):
        _require_str("PutEvent", key=self.key, value=self.value)
        if not self.key:
            raise ScenarioError("PutEvent key cannot be empty")
        if not self.value:
            raise ScenarioError("PutEvent value cannot be empty")


@dataclass(frozen=True)
class ExpectedEvent:
    """One unit of expected watch output.

    Attributes:
        key: Watched key, must appear first
        value: Watched value, must appear after the key
        exec_output: Text the side-effect command prints after the value
            (only when the watch pipes events through `-- <command>`)
    """

    key: str
    value: str
    exec_output: Optional[str] = None

    def __post_init__(self):
        _require_str("ExpectedEvent", key=self.key, value=self.value)
        if self.exec_output is not None:
            _require_str("ExpectedEvent", exec_output=self.exec_output)
        if not self.key:
            raise ScenarioError("ExpectedEvent key cannot be empty")
        if not self.value:
            raise ScenarioError("ExpectedEvent value cannot be empty")

    def tokens(self) -> List[Tuple[str, str]]:
        """Substrings to match for this event, in order, as (field, text)."""
        tokens = [("key", self.key), ("value", self.value)]
        if self.exec_output:
            tokens.append(("exec_output", self.exec_output))
        return tokens


@dataclass(frozen=True)
class ScenarioConfig:
    """A single watch scenario.

    Scenarios are pure data; the runner has no per-scenario branching.
    When env_key / env_range_end are set, the matching positional
    arguments are left out of args.

    Example YAML:
        scenarios:
          - name: "watch 3 keys by range, with env"
            puts:
              - {key: key1, value: val1}
              - {key: key3, value: val3}
              - {key: key2, value: val2}
            env_key: key
            env_range_end: key3
            args: ["--rev", "1"]
            expected:
              - {key: key1, value: val1}
              - {key: key2, value: val2}
    """

    puts: Tuple[PutEvent, ...]
    args: Tuple[str, ...]
    expected: Tuple[ExpectedEvent, ...]
    env_key: Optional[str] = None
    env_range_end: Optional[str] = None
    name: str = ""
    description: str = ""

    def __post_init__(self):
        # Normalize lists to tuples so the table stays immutable
        object.__setattr__(self, "puts", tuple(self.puts))
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "expected", tuple(self.expected))

        if not self.expected:
            raise ScenarioError(f"Scenario '{self.name}' has no expected events")
        if self.env_range_end and not self.env_key and not self._has_positional_arg():
            raise ScenarioError(
                f"Scenario '{self.name}' sets env_range_end without a key"
            )

    def _has_positional_arg(self) -> bool:
        return bool(self.args) and not self.args[0].startswith("-")

    @property
    def uses_env(self) -> bool:
        return bool(self.env_key or self.env_range_end)

    @property
    def has_exec_command(self) -> bool:
        return "--" in self.args

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], source_path: Optional[Path] = None
    ) -> "ScenarioConfig":
        """Create ScenarioConfig from dictionary.

        Args:
            data: Dictionary containing scenario data
            source_path: Optional source path for error messages

        Returns:
            ScenarioConfig instance

        Raises:
            ScenarioError: If required fields missing or validation fails
        """
        scenario_data = data.get("scenario", data)
        source = f" in {source_path}" if source_path else ""

        for required in ["args", "expected"]:
            if required not in scenario_data:
                raise ScenarioError(f"Missing required field '{required}'{source}")

        try:
            return cls(
                puts=tuple(PutEvent(**_stringify(p)) for p in scenario_data.get("puts", [])),
                args=tuple(str(a) for a in scenario_data["args"]),
                expected=tuple(ExpectedEvent(**_stringify(e)) for e in scenario_data["expected"]),
                env_key=_optional_str(scenario_data.get("env_key")),
                env_range_end=_optional_str(scenario_data.get("env_range_end")),
                name=scenario_data.get("name", ""),
                description=scenario_data.get("description", ""),
            )
        except ScenarioError:
            raise
        except Exception as e:
            raise ScenarioError(f"Failed to parse scenario{source}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert scenario to dictionary (for serialization)."""
        data: Dict[str, Any] = {
            "name": self.name,
            "puts": [{"key": p.key, "value": p.value} for p in self.puts],
            "args": list(self.args),
            "expected": [],
        }
        for e in self.expected:
            event = {"key": e.key, "value": e.value}
            if e.exec_output:
                event["exec_output"] = e.exec_output
            data["expected"].append(event)
        if self.env_key:
            data["env_key"] = self.env_key
        if self.env_range_end:
            data["env_range_end"] = self.env_range_end
        if self.description:
            data["description"] = self.description
        return data


def load_scenarios(path: Path) -> List[ScenarioConfig]:
    """Load a scenario table from a YAML file.

    The file holds either a single scenario mapping or
    {"scenarios": [...]}; order in the file is execution order.

    Raises:
        ScenarioError: If file not found, invalid YAML, or validation fails
    """
    if not path.exists():
        raise ScenarioError(f"Scenario file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ScenarioError(f"Invalid YAML in {path}: {e}")

    if not data:
        raise ScenarioError(f"Empty scenario file: {path}")

    if isinstance(data, dict) and "scenarios" in data:
        entries = data["scenarios"] or []
    elif isinstance(data, list):
        entries = data
    else:
        entries = [data]

    return [ScenarioConfig.from_dict(entry, source_path=path) for entry in entries]


def dump_scenarios(scenarios: List[ScenarioConfig]) -> str:
    """Serialize a scenario table to YAML string."""
    return yaml.dump(
        {"scenarios": [s.to_dict() for s in scenarios]},
        default_flow_style=False,
        sort_keys=False,
    )
