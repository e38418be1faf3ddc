"""
Report generation for the watch e2e harness.

Generates human-readable and machine-readable reports from one or more
matrix runs (one per run context / profile).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List
import json

from ..models.result import MatrixResult, ResultStatus

STATUS_EMOJI = {
    ResultStatus.PASSED: "✅",
    ResultStatus.FAILED: "❌",
    ResultStatus.EXPECTED_TIMEOUT: "⏱️",
    ResultStatus.ERROR: "💥",
}


@dataclass
class Report:
    """Summary report across matrix runs."""

    timestamp: datetime
    total_scenarios: int
    passed: int
    failed: int
    errors: int
    expected_timeouts: int
    aborted_runs: int
    pass_rate: float
    total_duration_seconds: float
    runs: List[MatrixResult]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_scenarios": self.total_scenarios,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "expected_timeouts": self.expected_timeouts,
            "aborted_runs": self.aborted_runs,
            "pass_rate": round(self.pass_rate, 2),
            "total_duration_seconds": round(self.total_duration_seconds, 2),
            "runs": [r.to_dict() for r in self.runs],
        }


class Reporter:
    """Generates reports from matrix results.

    Supports multiple output formats:
    - JSON (for programmatic consumption)
    - Markdown (for human reading)
    - Summary (brief console output)

    Usage:
        reporter = Reporter()
        report = reporter.generate(runs)
        print(reporter.to_markdown(report))
    """

    def generate(self, runs: List[MatrixResult]) -> Report:
        """Generate a summary report from matrix results."""
        results = [r for run in runs for r in run.results]
        total = len(results)

        # Expected timeouts count as passing
        passed = sum(1 for r in results if r.status == ResultStatus.PASSED)
        expected_timeouts = sum(1 for r in results if r.status == ResultStatus.EXPECTED_TIMEOUT)
        failed = sum(1 for r in results if r.status == ResultStatus.FAILED)
        errors = sum(1 for r in results if r.status == ResultStatus.ERROR)

        return Report(
            timestamp=datetime.now(),
            total_scenarios=total,
            passed=passed,
            failed=failed,
            errors=errors,
            expected_timeouts=expected_timeouts,
            aborted_runs=sum(1 for run in runs if run.aborted),
            pass_rate=((passed + expected_timeouts) / total * 100) if total > 0 else 0.0,
            total_duration_seconds=sum(run.duration_seconds for run in runs),
            runs=list(runs),
        )

    def to_json(self, report: Report, indent: int = 2) -> str:
        """Export report as JSON."""
        return json.dumps(report.to_dict(), indent=indent, default=str)

    def to_markdown(self, report: Report) -> str:
        """Export report as Markdown."""
        md = f"""# Watch E2E Report

**Generated:** {report.timestamp.strftime("%Y-%m-%d %H:%M:%S")}

## Summary

| Metric | Value |
|--------|-------|
| Total Scenarios | {report.total_scenarios} |
| Passed | {report.passed} |
| Expected Timeouts | {report.expected_timeouts} |
| Failed | {report.failed} |
| Errors | {report.errors} |
| Aborted Runs | {report.aborted_runs} |
| **Pass Rate** | **{report.pass_rate:.1f}%** |
| Total Duration | {report.total_duration_seconds:.1f}s |
"""
        for run in report.runs:
            md += f"""
## {run.context}

| # | Name | Status | Duration | Matched |
|---|------|--------|----------|---------|
"""
            for r in run.results:
                emoji = STATUS_EMOJI.get(r.status, "❓")
                md += (
                    f"| {r.index} | {r.name} | {emoji} {r.status.value} | "
                    f"{r.duration_seconds:.1f}s | {len(r.matches)} |\n"
                )

            if run.aborted:
                md += f"\n**Aborted:** {run.abort_reason}\n"

            failures = run.failures()
            if failures:
                md += "\n### Failure Details\n\n"
                for r in failures:
                    md += f"#### watchTest #{r.index}: {r.name}\n\n"
                    md += f"**Error ({r.error_type}):** {r.error}\n\n"
                    if r.failed_event_index is not None:
                        md += f"**Failed at expected event:** {r.failed_event_index}\n\n"
                    if r.output_tail:
                        md += f"```\n{r.output_tail}\n```\n\n"

        md += """
---
*Generated by watch-e2e*
"""
        return md

    def to_summary(self, report: Report) -> str:
        """Generate brief summary for console output."""
        ok = report.passed + report.expected_timeouts
        status_emoji = "✅" if ok == report.total_scenarios and not report.aborted_runs else "❌"

        lines = [
            f"\n{status_emoji} Watch E2E Results",
            f"   Passed: {ok}/{report.total_scenarios} ({report.pass_rate:.1f}%)",
        ]

        if report.expected_timeouts > 0:
            lines.append(f"   Expected timeouts: {report.expected_timeouts}")
        if report.failed > 0:
            lines.append(f"   Failed: {report.failed}")
        if report.errors > 0:
            lines.append(f"   Errors: {report.errors}")
        if report.aborted_runs > 0:
            lines.append(f"   Aborted runs: {report.aborted_runs}")

        lines.append(f"   Duration: {report.total_duration_seconds:.1f}s")

        for run in report.runs:
            for r in run.failures():
                lines.append(f"   - [{run.context}] {r.summary()}")
            if run.aborted:
                lines.append(f"   - [{run.context}] aborted: {run.abort_reason}")

        return "\n".join(lines)
