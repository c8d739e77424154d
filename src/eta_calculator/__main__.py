"""Application entry point and CLI for eta-calculator.

This module implements the command-line tool that replays a recorded
progress trace (or a simulated constant-rate one) through the rolling-window
ETA calculator and prints the evolving estimates. It covers argument
parsing, configuration loading, logging setup and exit-code handling.
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final, NoReturn

from pydantic import ValidationError

from eta_calculator.core.config import (
    ConfigurationError,
    EstimatorConfig,
    MainConfig,
    format_validation_error,
    load_main_config,
)
from eta_calculator.core.replay import TraceError, load_trace, replay_trace, simulate_linear
from eta_calculator.types.models import EtaEstimate, TraceEntry
from eta_calculator.utils.formatting import format_eta, format_etr, format_progress
from eta_calculator.utils.logging import clear_session_id, configure_logging, set_session_id

__all__ = ["main", "run"]

DEFAULT_CONFIG_PATH: Final[Path] = Path("config/eta-calculator.yaml")

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_CONFIG_ERROR: Final[int] = 1
EXIT_RUNTIME_ERROR: Final[int] = 1


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser.

    Returns:
        Parser for the eta-calculator command

    CLI Arguments:
        trace: YAML progress trace to replay
        --simulate: Replay a constant-rate trace of the given length instead
        --steps: Number of progress increments for --simulate
        --config, -c: Path to main configuration file
        --log-level: Override log level from config
        --no-syslog: Disable syslog integration
        --minimum-data, --maximum-duration, --tolerance, --regression-policy:
            Override estimator settings from config
        --session-id: Identifier attached to every log line
    """
    parser = argparse.ArgumentParser(
        prog="eta-calculator",
        description="Replay progress observations through a rolling-window ETA calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  eta-calculator trace.yaml
  eta-calculator --simulate 120 --steps 24
  eta-calculator trace.yaml --minimum-data 3 --maximum-duration 15
  eta-calculator trace.yaml --config /path/to/config.yaml --log-level DEBUG
        """,
    )

    _ = parser.add_argument(
        "trace",
        nargs="?",
        type=Path,
        help="YAML progress trace to replay",
        metavar="TRACE",
    )
    _ = parser.add_argument(
        "--simulate",
        type=float,
        help="Replay a simulated constant-rate trace lasting SECONDS",
        metavar="SECONDS",
    )
    _ = parser.add_argument(
        "--steps",
        type=int,
        default=10,
        help="Number of progress increments for --simulate (default: 10)",
        metavar="N",
    )
    _ = parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help=f"Path to main configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from configuration",
        metavar="LEVEL",
    )
    _ = parser.add_argument(
        "--no-syslog",
        action="store_true",
        help="Disable syslog integration (useful for development)",
    )
    _ = parser.add_argument(
        "--minimum-data",
        type=int,
        help="Minimum number of samples before the ETA is trusted",
        metavar="N",
    )
    _ = parser.add_argument(
        "--maximum-duration",
        type=float,
        help="Width of the rolling window in seconds",
        metavar="SECONDS",
    )
    _ = parser.add_argument(
        "--tolerance",
        type=float,
        help="Progress delta below which observations are treated as identical",
    )
    _ = parser.add_argument(
        "--regression-policy",
        choices=["clamp", "propagate"],
        help="Handling of negative remaining time when progress moves backward",
    )
    _ = parser.add_argument(
        "--session-id",
        type=str,
        help="Identifier attached to every log line (default: trace name)",
    )

    return parser


def resolve_config(config_path: Path | None) -> MainConfig:
    """Load the main configuration, falling back to defaults.

    Args:
        config_path: Explicit configuration file, or None to use
            ``DEFAULT_CONFIG_PATH`` when it exists

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the configuration file is missing or invalid
    """
    if config_path is not None:
        return load_main_config(config_path)

    if DEFAULT_CONFIG_PATH.exists():
        return load_main_config(DEFAULT_CONFIG_PATH)

    return MainConfig()


def apply_estimator_overrides(estimator: EstimatorConfig, overrides: dict[str, object]) -> EstimatorConfig:
    """Merge command-line overrides into the estimator configuration.

    Args:
        estimator: Configuration loaded from file
        overrides: Values given on the command line (None entries are ignored)

    Returns:
        Revalidated estimator configuration

    Raises:
        ConfigurationError: If an override fails validation
    """
    provided = {key: value for key, value in overrides.items() if value is not None}
    if not provided:
        return estimator

    try:
        return EstimatorConfig.model_validate({**estimator.model_dump(), **provided})
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e)) from e


def format_status_line(entry: TraceEntry, estimate: EtaEstimate) -> str:
    """Render one replay step as a status line.

    Args:
        entry: Trace entry that was just recorded
        estimate: Estimate taken after recording it

    Returns:
        Fixed-layout line with elapsed time, progress, ETR and ETA
    """
    return (
        f"{entry.elapsed:>9.2f}s  "
        f"progress {format_progress(estimate.progress):>6}  "
        f"samples {estimate.sample_count:>3}  "
        f"etr {format_etr(estimate.etr):>8}  "
        f"eta {format_eta(estimate.eta)}"
    )


def run(argv: Sequence[str] | None = None) -> int:
    """Run the command-line tool.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``)

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    trace_arg: Path | None = args.trace  # pyright: ignore[reportAny]  # argparse boundary
    simulate_arg: float | None = args.simulate  # pyright: ignore[reportAny]  # argparse boundary
    steps_arg: int = args.steps  # pyright: ignore[reportAny]  # argparse boundary
    config_arg: Path | None = args.config  # pyright: ignore[reportAny]  # argparse boundary
    log_level_arg: str | None = args.log_level  # pyright: ignore[reportAny]  # argparse boundary
    no_syslog_arg: bool = args.no_syslog  # pyright: ignore[reportAny]  # argparse boundary
    session_id_arg: str | None = args.session_id  # pyright: ignore[reportAny]  # argparse boundary

    if (trace_arg is None) == (simulate_arg is None):
        parser.error("exactly one of TRACE or --simulate is required")

    try:
        config = resolve_config(config_arg)
        estimator = apply_estimator_overrides(
            config.estimator,
            {
                "minimum_data": args.minimum_data,  # pyright: ignore[reportAny]  # argparse boundary
                "maximum_duration": args.maximum_duration,  # pyright: ignore[reportAny]  # argparse boundary
                "tolerance": args.tolerance,  # pyright: ignore[reportAny]  # argparse boundary
                "regression_policy": args.regression_policy,  # pyright: ignore[reportAny]  # argparse boundary
            },
        )
    except ConfigurationError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(
        log_level=log_level_arg or config.application.log_level,
        enable_syslog=config.application.syslog_enabled and not no_syslog_arg,
        enable_console=True,
    )
    logger = logging.getLogger(__name__)

    try:
        if trace_arg is not None:
            entries = load_trace(trace_arg)
            session_id = session_id_arg or trace_arg.stem
        elif simulate_arg is not None:
            entries = simulate_linear(simulate_arg, steps=steps_arg)
            session_id = session_id_arg or "simulation"
        else:
            parser.error("exactly one of TRACE or --simulate is required")
    except TraceError as exc:
        print(f"Trace error:\n{exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValueError as exc:
        print(f"Invalid simulation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    set_session_id(session_id)
    try:
        logger.info(
            "Replaying progress trace",
            extra={
                "samples": len(entries),
                "minimum_data": estimator.minimum_data,
                "maximum_duration": estimator.maximum_duration,
            },
        )

        refresh_interval = config.application.refresh_interval
        last_printed: float | None = None
        last_step: tuple[TraceEntry, EtaEstimate] | None = None

        for entry, estimate in replay_trace(entries, estimator=estimator):
            last_step = (entry, estimate)
            if last_printed is None or entry.elapsed - last_printed >= refresh_interval:
                print(format_status_line(entry, estimate))
                last_printed = entry.elapsed
                last_step = None

        # Always show the final state
        if last_step is not None:
            print(format_status_line(*last_step))

        logger.info("Replay complete")
    except TraceError as exc:
        print(f"Trace error:\n{exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValueError as exc:
        print(f"Replay failed: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    finally:
        clear_session_id()

    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point for the eta-calculator command.

    Exit Codes:
        0: Trace replayed successfully
        1: Configuration, trace or runtime error
        2: Invalid command-line usage
    """
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
