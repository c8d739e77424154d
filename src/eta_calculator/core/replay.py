"""Progress trace loading and deterministic replay.

A trace is a recorded sequence of progress observations, each stamped with
the seconds elapsed since the start of the operation. Replaying a trace
drives an ``EtaCalculator`` backed by a ``ManualClock`` so that estimates are
reproduced exactly, without waiting in real time.

Trace file format (YAML)::

    samples:
      - {elapsed: 0.0, progress: 0.0}
      - {elapsed: 2.5, progress: 0.1}

A bare list of entries at the root is accepted as well.
"""

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta
from pathlib import Path
from typing import Annotated

import yaml
from pydantic import BaseModel, Field, ValidationError

from eta_calculator.core.clock import ManualClock
from eta_calculator.core.config import EstimatorConfig, format_validation_error
from eta_calculator.types.models import EtaEstimate, TraceEntry

logger = logging.getLogger(__name__)

# Largest elapsed time a timedelta can hold
_MAX_ELAPSED = timedelta.max.total_seconds()


class TraceError(Exception):
    """Exception raised when a progress trace cannot be loaded."""


class _TraceEntryModel(BaseModel):
    """Validation schema for a single trace entry."""

    elapsed: Annotated[float, Field(ge=0, le=_MAX_ELAPSED, allow_inf_nan=False)]
    progress: Annotated[float, Field(allow_inf_nan=False)]


def parse_trace(raw_data: object, *, source: Path | None = None) -> list[TraceEntry]:
    """Validate raw trace data and convert it into entries.

    Args:
        raw_data: Parsed YAML content (list of entries, or mapping with ``samples``)
        source: File the data was read from, for error messages

    Returns:
        Trace entries in file order

    Raises:
        TraceError: If the structure is invalid, an entry fails validation,
            or elapsed times decrease
    """
    location = f" in {source}" if source is not None else ""

    if isinstance(raw_data, dict):
        raw_data = raw_data.get("samples")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]  # YAML boundary

    if not isinstance(raw_data, list):
        msg = f"Trace{location} must be a list of samples or a mapping with a 'samples' list"
        raise TraceError(msg)

    entries: list[TraceEntry] = []
    for index, item in enumerate(raw_data):  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]  # YAML boundary
        try:
            model = _TraceEntryModel.model_validate(item)
        except ValidationError as e:
            msg = f"Invalid trace sample #{index}{location}:\n{format_validation_error(e, source=source)}"
            raise TraceError(msg) from e

        if entries and model.elapsed < entries[-1].elapsed:
            msg = (
                f"Trace sample #{index}{location} goes back in time: "
                f"{model.elapsed}s after {entries[-1].elapsed}s"
            )
            raise TraceError(msg)

        entries.append(TraceEntry(elapsed=model.elapsed, progress=model.progress))

    return entries


def load_trace(path: Path) -> list[TraceEntry]:
    """Load a progress trace from a YAML file.

    Args:
        path: Path to the trace file

    Returns:
        Trace entries in file order

    Raises:
        TraceError: If the file cannot be read, parsed or validated
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = f"Failed to parse trace file: {path}\nYAML parsing error: {e}"
        raise TraceError(msg) from e
    except OSError as e:
        msg = f"Failed to read trace file: {path}\nError: {e}"
        raise TraceError(msg) from e

    entries = parse_trace(raw_data, source=path)
    logger.info("Loaded progress trace", extra={"trace_path": str(path), "samples": len(entries)})
    return entries


def simulate_linear(duration: float, *, steps: int = 10) -> list[TraceEntry]:
    """Build a constant-rate trace from 0.0 to 1.0.

    Args:
        duration: Total time to reach completion in seconds (must be positive)
        steps: Number of equal progress increments (must be at least 1)

    Returns:
        ``steps + 1`` entries evenly spaced in time and progress

    Examples:
        >>> simulate_linear(10.0, steps=2)
        [TraceEntry(elapsed=0.0, progress=0.0), TraceEntry(elapsed=5.0, progress=0.5), TraceEntry(elapsed=10.0, progress=1.0)]
    """
    if duration <= 0:
        msg = "duration must be positive"
        raise ValueError(msg)
    if steps < 1:
        msg = "steps must be at least 1"
        raise ValueError(msg)

    return [TraceEntry(elapsed=duration * i / steps, progress=i / steps) for i in range(steps + 1)]


def replay_trace(
    entries: Sequence[TraceEntry],
    *,
    estimator: EstimatorConfig | None = None,
    started_at: datetime | None = None,
) -> Iterator[tuple[TraceEntry, EtaEstimate]]:
    """Feed a trace through a fresh calculator on simulated time.

    The wall clock seen by the calculator is ``started_at`` plus the
    simulated elapsed time, so absolute ETAs are reproducible.

    Args:
        entries: Trace entries with non-decreasing elapsed times
        estimator: Calculator settings (defaults to ``EstimatorConfig()``)
        started_at: Wall-clock time of the first entry (defaults to now)

    Yields:
        Each entry paired with the estimate taken right after recording it

    Raises:
        TraceError: If an entry lies beyond the range of the simulated clocks
    """
    clock = ManualClock()
    origin = started_at or datetime.now()

    def wall_clock() -> datetime:
        return origin + timedelta(seconds=clock.now() / clock.frequency)

    calculator = (estimator or EstimatorConfig()).build_calculator(clock=clock, wall_clock=wall_clock)

    for index, entry in enumerate(entries):
        try:
            clock.advance_to(entry.elapsed)
            calculator.update(entry.progress)
            estimate = calculator.estimate()
        except (OverflowError, ValueError) as e:
            msg = f"Trace sample #{index} at {entry.elapsed}s cannot be replayed: {e}"
            raise TraceError(msg) from e
        yield entry, estimate
