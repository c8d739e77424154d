"""Pure calculation functions for ETR and ETA estimation.

This module provides stateless, side-effect-free functions for calculating:
- Whether a sample window carries enough information to estimate
- Remaining ticks by linear extrapolation between two samples
- Conversion of ticks to a saturating ``timedelta``
- The absolute ETA from a wall-clock reading and an ETR

The calculator composes these functions on top of a single window snapshot.
"""

import math
from datetime import datetime, timedelta
from typing import Final

from eta_calculator.types.models import RegressionPolicy, Sample, SampleWindow

# Sentinel returned while the remaining time is unknown
UNKNOWN_ETR: Final[timedelta] = timedelta.max

DEFAULT_TOLERANCE: Final[float] = 0.001

_MAX_SECONDS: Final[float] = timedelta.max.total_seconds()


def is_estimable(*, window: SampleWindow, minimum_data: int, tolerance: float) -> bool:
    """Check whether a window snapshot can produce an estimate.

    Args:
        window: Snapshot of the extrapolation window
        minimum_data: Minimum number of samples required
        tolerance: Progress delta at or below which the slope is considered flat

    Returns:
        True if enough samples exist and progress moved by more than tolerance

    Examples:
        >>> window = SampleWindow(Sample(0, 0.0), Sample(10, 0.5), size=2)
        >>> is_estimable(window=window, minimum_data=2, tolerance=0.001)
        True
        >>> is_estimable(window=window, minimum_data=3, tolerance=0.001)
        False
    """
    if window.oldest is None or window.current is None:
        return False

    if window.size < minimum_data:
        return False

    return abs(window.oldest.progress - window.current.progress) > tolerance


def extrapolate_remaining_ticks(*, oldest: Sample, current: Sample) -> float:
    """Extrapolate the ticks needed to reach full progress.

    Assumes the rate observed between ``oldest`` and ``current`` continues
    unchanged until progress reaches 1.0.

    Args:
        oldest: Left edge of the extrapolation window
        current: Most recent sample

    Returns:
        Remaining ticks (negative when progress regressed)

    Raises:
        ZeroDivisionError: If both samples carry the same progress

    Examples:
        >>> extrapolate_remaining_ticks(oldest=Sample(0, 0.0), current=Sample(10, 0.5))
        10.0
        >>> extrapolate_remaining_ticks(oldest=Sample(0, 0.2), current=Sample(30, 0.8))
        10.0
    """
    elapsed_ticks = current.timestamp - oldest.timestamp
    progress_delta = current.progress - oldest.progress
    return (1.0 - current.progress) * elapsed_ticks / progress_delta


def ticks_to_timedelta(
    ticks: float,
    *,
    frequency: int,
    policy: RegressionPolicy = RegressionPolicy.CLAMP,
) -> timedelta:
    """Convert a tick count into a duration.

    Args:
        ticks: Number of ticks (may be negative or non-finite)
        frequency: Ticks per second (must be positive)
        policy: Handling of negative durations

    Returns:
        Duration rounded to microseconds. Values beyond the representable
        range saturate to ``timedelta.max`` / ``timedelta.min``.

    Edge cases:
        - NaN returns ``UNKNOWN_ETR``
        - Negative ticks return ``timedelta(0)`` under ``RegressionPolicy.CLAMP``

    Examples:
        >>> ticks_to_timedelta(2_500_000_000, frequency=1_000_000_000)
        datetime.timedelta(seconds=2, microseconds=500000)
        >>> ticks_to_timedelta(-5, frequency=1)
        datetime.timedelta(0)
    """
    if frequency <= 0:
        msg = "frequency must be positive"
        raise ValueError(msg)

    if math.isnan(ticks):
        return UNKNOWN_ETR

    seconds = ticks / frequency

    if seconds < 0 and policy is RegressionPolicy.CLAMP:
        return timedelta(0)

    if seconds >= _MAX_SECONDS:
        return timedelta.max
    if seconds <= -_MAX_SECONDS:
        return timedelta.min

    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        # Rounding to microseconds can still push the edge of the range over
        return timedelta.max if seconds > 0 else timedelta.min


def calculate_eta(*, now: datetime, etr: timedelta) -> datetime | None:
    """Calculate the absolute time of arrival.

    Args:
        now: Current wall-clock time
        etr: Estimated time remaining

    Returns:
        ``now + etr``, or None if ``etr`` is the unknown sentinel or the
        result falls outside the representable datetime range
    """
    if etr == UNKNOWN_ETR:
        return None

    try:
        return now + etr
    except OverflowError:
        return None
