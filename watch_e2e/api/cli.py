"""
Command line interface for the watch e2e harness.

Usage:
    python -m watch_e2e run
    python -m watch_e2e run --profile default --profile interactive --format markdown
    python -m watch_e2e run --scenarios my_scenarios.yaml --dial-timeout 0
    python -m watch_e2e denied sample --rev 1
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional
import logging

from ..config import Config, WatchRunContext
from ..models.scenario import ScenarioConfig, load_scenarios
from ..orchestration.runner import WatchMatrixRunner, DryRunner
from ..execution.driver import PermissionDeniedDriver
from ..execution.session import PexpectSessionFactory
from ..reporting.reporter import Reporter
from ..scenarios import get_all_scenarios
from ..exceptions import MutationError, WatchE2EError


def setup_logging(verbose: bool, quiet: bool):
    """Configure logging based on verbosity.

    Args:
        verbose: Enable debug logging
        quiet: Suppress all but errors
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def load_config(args) -> Config:
    """Config from --config if given, else defaults plus environment overrides."""
    if getattr(args, "config", None):
        return Config.from_yaml(args.config)
    return Config.from_env()


def load_table(path: Optional[Path]) -> List[ScenarioConfig]:
    """Scenario table from a YAML file, or the built-in table."""
    if path is None:
        return get_all_scenarios()
    return load_scenarios(path)


def apply_overrides(config: Config, args) -> None:
    """Apply command line overrides in place.

    Raises:
        ConfigurationError: If an override is out of range
    """
    if getattr(args, "ctl_path", None):
        config.ctl.ctl_path = args.ctl_path
    if getattr(args, "endpoints", None):
        config.ctl.endpoints = [e.strip() for e in args.endpoints.split(",") if e.strip()]
    if getattr(args, "dial_timeout", None) is not None:
        config.timeouts.dial_timeout = args.dial_timeout
    if getattr(args, "expect_timeout", None) is not None:
        config.timeouts.expect_timeout = args.expect_timeout
    if getattr(args, "interactive", False):
        config.interactive = True

    # Re-run validation on the mutated sections
    config.ctl.__post_init__()
    config.timeouts.__post_init__()


def run_command(args):
    """Run the scenario table under each requested profile."""
    config = load_config(args)
    apply_overrides(config, args)
    scenarios = load_table(args.scenarios)

    if not scenarios:
        print("No scenarios to run")
        sys.exit(1)

    profiles = args.profile or [None]
    contexts: List[WatchRunContext] = [config.context(p) for p in profiles]

    print(f"Found {len(scenarios)} scenarios, {len(contexts)} run context(s)")

    runs = []
    aborted = False
    for context in contexts:
        runner = WatchMatrixRunner(context)
        try:
            runs.append(runner.run(scenarios))
        except MutationError as e:
            logging.error(f"Run aborted under {context.name}: {e}")
            runs.append(runner.last_result)
            aborted = True
            break

    reporter = Reporter()
    report = reporter.generate(runs)

    if args.format == "json":
        output = reporter.to_json(report)
    elif args.format == "markdown":
        output = reporter.to_markdown(report)
    else:  # summary
        output = reporter.to_summary(report)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output)
        print(f"\nReport saved to: {args.output}")
    else:
        print(output)

    if aborted or report.errors > 0:
        sys.exit(2)  # Errors occurred
    elif report.failed > 0:
        sys.exit(1)  # Some scenarios failed
    else:
        sys.exit(0)


def list_command(args):
    """List the scenario table."""
    scenarios = load_table(args.scenarios)

    print(f"\nScenarios ({args.scenarios or 'built-in'}):\n")
    for i, s in enumerate(scenarios):
        env = ""
        if s.uses_env:
            env = f" [env key={s.env_key or '-'} range_end={s.env_range_end or '-'}]"
        print(f"  #{i} {s.name}: watch {' '.join(s.args)}{env}")

    print(f"\nTotal: {len(scenarios)} scenarios")


def validate_command(args):
    """Validate the scenario table."""
    scenarios = load_table(args.scenarios)

    dry = DryRunner()
    validation = dry.validate_scenarios(scenarios)

    print("\nValidation Results:\n")
    for result in validation["results"]:
        status = "✅" if result["valid"] else "❌"
        print(f"{status} #{result['index']} {result['name']}")
        for issue in result["issues"]:
            print(f"   ⚠️  {issue}")

    print(f"\nSummary: {validation['valid']}/{validation['total']} valid")
    sys.exit(0 if validation["invalid"] == 0 else 1)


def denied_command(args):
    """Expect the server to cancel a watch (e.g. missing permission)."""
    config = load_config(args)
    apply_overrides(config, args)
    context = config.context(args.profile)

    driver = PermissionDeniedDriver(context, PexpectSessionFactory.from_context(context))
    try:
        driver.run(args.watch_args)
    except WatchE2EError as e:
        print(f"❌ watch was not canceled: {e}")
        sys.exit(1)

    print("✅ watch canceled by the server")
    sys.exit(0)


def _add_context_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="Path to config YAML")
    parser.add_argument("--ctl-path", help="Client binary to run")
    parser.add_argument("--endpoints", help="Comma separated endpoints")
    parser.add_argument("--dial-timeout", type=int, help="Dial timeout (seconds)")
    parser.add_argument("--expect-timeout", type=float, help="Per-token expect timeout (seconds)")
    parser.add_argument("--interactive", action="store_true", help="Use interactive mode")


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="watch-e2e - end-to-end checks for a ctl watch command",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the built-in table against a local cluster
  python -m watch_e2e run --ctl-path bin/etcdctl

  # Run scripted and interactive variants, markdown report
  python -m watch_e2e run --profile default --profile interactive -f markdown

  # Zero dial timeout: deadline errors are the expected outcome
  python -m watch_e2e run --profile timeout
""",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet output (errors only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run the scenario table")
    run_parser.add_argument(
        "--scenarios",
        type=Path,
        help="Scenario YAML file (default: built-in table)",
    )
    run_parser.add_argument(
        "--profile", "-p",
        action="append",
        help="Run context profile; repeat to run several (default: default)",
    )
    run_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file path",
    )
    run_parser.add_argument(
        "--format", "-f",
        choices=["json", "markdown", "summary"],
        default="summary",
        help="Output format (default: summary)",
    )
    _add_context_args(run_parser)
    run_parser.set_defaults(func=run_command)

    # List command
    list_parser = subparsers.add_parser("list", help="List scenarios")
    list_parser.add_argument("--scenarios", type=Path, help="Scenario YAML file")
    list_parser.set_defaults(func=list_command)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate scenarios")
    validate_parser.add_argument("--scenarios", type=Path, help="Scenario YAML file")
    validate_parser.set_defaults(func=validate_command)

    # Permission-denied command
    denied_parser = subparsers.add_parser(
        "denied", help="Expect the server to cancel a watch"
    )
    denied_parser.add_argument("--profile", "-p", help="Run context profile")
    _add_context_args(denied_parser)
    denied_parser.add_argument(
        "watch_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to watch",
    )
    denied_parser.set_defaults(func=denied_command)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.verbose, args.quiet)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Error: {e}")
        if args.verbose:
            logging.exception("Full traceback:")
        sys.exit(1)


if __name__ == "__main__":
    main()
