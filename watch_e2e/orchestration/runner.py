"""
Matrix runner for the watch e2e harness.

The WatchMatrixRunner walks the scenario table in order. For each scenario:
1. Start the concurrent mutator
2. Inject the implicit environment
3. Drive the watch and match its output (canceled at once if a put fails)
4. Record the outcome
5. Restore the environment
6. Wait for the mutator before moving on

A failed put aborts the whole run; everything else is recorded per scenario.
"""

from datetime import datetime
from typing import List, Optional, Sequence
import logging
import threading
import time

from ..config import WatchRunContext
from ..models.scenario import ScenarioConfig
from ..models.result import MatrixResult, ResultStatus, ScenarioResult
from ..execution.driver import WatchDriver
from ..execution.environment import WatchEnvironment
from ..execution.mutator import ConcurrentMutator, CtlPutter, Putter
from ..execution.session import PexpectSessionFactory, SessionFactory
from ..evaluation.classifier import classify, is_expected_timeout
from ..exceptions import CanceledError, MatchError, MutationError

logger = logging.getLogger(__name__)


class WatchMatrixRunner:
    """Runs a scenario table against one run context.

    Usage:
        context = Config.from_env().context("interactive")
        runner = WatchMatrixRunner(context)
        result = runner.run(get_all_scenarios())
        print(result.passed)

    Attributes:
        context: Read-only run context
        factory: Session factory (pexpect by default)
        putter: Putter used by the concurrent mutator (ctl put by default)
        last_result: Result of the most recent run, kept even when it aborted
    """

    def __init__(
        self,
        context: WatchRunContext,
        factory: Optional[SessionFactory] = None,
        putter: Optional[Putter] = None,
    ):
        self.context = context
        self.factory = factory or PexpectSessionFactory.from_context(context)
        self.putter = putter or CtlPutter(context)
        self.driver = WatchDriver(context, self.factory)
        self.last_result: Optional[MatrixResult] = None

    def run(self, scenarios: Sequence[ScenarioConfig]) -> MatrixResult:
        """Run every scenario sequentially.

        Returns:
            MatrixResult with one ScenarioResult per scenario

        Raises:
            MutationError: If any put fails (the run stops immediately;
                partial results remain in last_result)
        """
        matrix = MatrixResult(context=self.context.describe(), start_time=datetime.now())
        self.last_result = matrix
        total = len(scenarios)

        logger.info(f"Running {total} watch scenarios under {self.context.describe()}")

        try:
            for i, scenario in enumerate(scenarios):
                logger.info(f"Running scenario {i + 1}/{total}: {scenario.name or i}")
                matrix.results.append(self.run_scenario(i, scenario))
        except MutationError as e:
            matrix.aborted = True
            matrix.abort_reason = str(e)
            logger.error(f"Aborting run: {e}")
            raise
        finally:
            matrix.end_time = datetime.now()

        passed = sum(1 for r in matrix.results if r.passed)
        logger.info(f"Progress: {passed}/{total} passed")
        return matrix

    def run_scenario(self, index: int, scenario: ScenarioConfig) -> ScenarioResult:
        """Run one scenario.

        Raises:
            MutationError: If one of the scenario's puts fails, or the puts
                do not finish within the mutation timeout
        """
        mutator = ConcurrentMutator(self.putter, scenario.puts, scenario_index=index)
        mutator.start()
        try:
            result = self._watch(index, scenario, mutator.failure)
        finally:
            mutator.wait(self.context.timeouts.mutation_timeout)

        # A missing write explains any watch failure, so it wins
        mutator.raise_for_error()
        return result

    def _watch(
        self,
        index: int,
        scenario: ScenarioConfig,
        cancel: Optional[threading.Event] = None,
    ) -> ScenarioResult:
        start = time.monotonic()
        env = WatchEnvironment(
            env_key=scenario.env_key,
            env_range_end=scenario.env_range_end,
            names=self.context.env_names,
        )

        try:
            with env:
                matches = self.driver.run(scenario.args, scenario.expected, cancel)
        except Exception as e:
            return self._failure(index, scenario, e, time.monotonic() - start)

        logger.debug(f"watchTest #{index}: matched {len(matches)} tokens")
        return ScenarioResult(
            index=index,
            name=scenario.name,
            status=ResultStatus.PASSED,
            duration_seconds=time.monotonic() - start,
            matches=matches,
        )

    def _failure(
        self,
        index: int,
        scenario: ScenarioConfig,
        error: Exception,
        duration: float,
    ) -> ScenarioResult:
        """Build the result for a scenario whose watch raised."""
        if is_expected_timeout(self.context, error):
            status = ResultStatus.EXPECTED_TIMEOUT
            logger.info(f"watchTest #{index}: expected deadline error ({error})")
        elif isinstance(error, CanceledError):
            status = ResultStatus.ERROR
            logger.warning(f"watchTest #{index}: watch canceled ({error})")
        elif isinstance(error, MatchError):
            status = ResultStatus.FAILED
            logger.error(f"watchTest #{index}: watch error ({error})")
        else:
            status = ResultStatus.ERROR
            logger.error(f"watchTest #{index}: watch error ({error})")

        return ScenarioResult(
            index=index,
            name=scenario.name,
            status=status,
            duration_seconds=duration,
            error=str(error),
            error_type=classify(error),
            failed_event_index=getattr(error, "event_index", None),
            output_tail=getattr(error, "output", ""),
        )


class DryRunner:
    """Dry run mode - validates a scenario table without executing.

    Useful for checking scenario files before pointing them at a cluster.
    """

    def validate_scenario(self, index: int, scenario: ScenarioConfig) -> dict:
        """Validate a scenario without running it.

        Args:
            index: Position of the scenario in the table
            scenario: Scenario to validate

        Returns:
            Dict with validation results
        """
        issues = []

        if scenario.env_key and scenario.args and not scenario.args[0].startswith("-"):
            issues.append(
                f"env_key is set but args start with positional '{scenario.args[0]}'"
            )

        if any(e.exec_output for e in scenario.expected) and not scenario.has_exec_command:
            issues.append("exec_output expected but args have no '--' command")

        if len(scenario.expected) > len(scenario.puts):
            issues.append(
                f"{len(scenario.expected)} expected events but only {len(scenario.puts)} puts"
            )

        return {
            "index": index,
            "name": scenario.name,
            "valid": len(issues) == 0,
            "issues": issues,
            "puts": len(scenario.puts),
            "expected_events": len(scenario.expected),
            "uses_env": scenario.uses_env,
        }

    def validate_scenarios(self, scenarios: Sequence[ScenarioConfig]) -> dict:
        """Validate a whole table.

        Returns:
            Dict with overall validation results
        """
        results: List[dict] = [
            self.validate_scenario(i, s) for i, s in enumerate(scenarios)
        ]
        valid_count = sum(1 for r in results if r["valid"])

        return {
            "total": len(scenarios),
            "valid": valid_count,
            "invalid": len(scenarios) - valid_count,
            "results": results,
        }
