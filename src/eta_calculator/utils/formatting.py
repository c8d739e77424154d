"""Pure formatting utilities for human-readable output.

This module provides stateless formatting functions for converting estimation
results into human-readable strings. All functions are pure with no side effects.
"""

from datetime import datetime, timedelta

from eta_calculator.core.calculation import UNKNOWN_ETR

# Time unit constants
_MINUTE = 60
_HOUR = _MINUTE * 60  # 3,600
_DAY = _HOUR * 24  # 86,400

UNKNOWN_TEXT = "unknown"


def format_duration(seconds: float) -> str:
    """Convert seconds to human-readable duration format.

    Automatically selects appropriate time units based on magnitude.
    Shows the two most significant units for values over 1 minute.

    Args:
        seconds: Duration in seconds (must be non-negative)

    Returns:
        Human-readable duration string with adaptive granularity.
        - Days: "Xd Yh" (shows days and remaining hours)
        - Hours: "Xh Ym" (shows hours and remaining minutes)
        - Minutes: "Xm Ys" (shows minutes and remaining seconds)
        - Seconds: "Xs" (shows seconds only)

    Examples:
        >>> format_duration(45)
        '45s'
        >>> format_duration(90)
        '1m 30s'
        >>> format_duration(3665)
        '1h 1m'
        >>> format_duration(90000)
        '1d 1h'

    Note:
        Rounds down to whole units for cleaner display.
        Does not show zero values (e.g., "1h 0m" becomes "1h").
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    total_seconds = int(seconds)

    if total_seconds >= _DAY:
        days = total_seconds // _DAY
        hours = (total_seconds % _DAY) // _HOUR

        if hours > 0:
            return f"{days}d {hours}h"
        return f"{days}d"

    if total_seconds >= _HOUR:
        hours = total_seconds // _HOUR
        minutes = (total_seconds % _HOUR) // _MINUTE

        if minutes > 0:
            return f"{hours}h {minutes}m"
        return f"{hours}h"

    if total_seconds >= _MINUTE:
        minutes = total_seconds // _MINUTE
        remaining = total_seconds % _MINUTE

        if remaining > 0:
            return f"{minutes}m {remaining}s"
        return f"{minutes}m"

    return f"{total_seconds}s"


def format_etr(etr: timedelta) -> str:
    """Format an estimated time remaining.

    Args:
        etr: Remaining duration, possibly the unknown sentinel or negative

    Returns:
        "unknown" for the sentinel, a "-" prefixed duration for negative
        values, otherwise the ``format_duration`` rendering

    Examples:
        >>> format_etr(timedelta(seconds=95))
        '1m 35s'
        >>> format_etr(timedelta.max)
        'unknown'
        >>> format_etr(timedelta(seconds=-5))
        '-5s'
    """
    if etr == UNKNOWN_ETR:
        return UNKNOWN_TEXT

    seconds = etr.total_seconds()
    if seconds < 0:
        return f"-{format_duration(-seconds)}"
    return format_duration(seconds)


def format_eta(eta: datetime | None) -> str:
    """Format an estimated time of arrival.

    Args:
        eta: Absolute completion time, or None when unavailable

    Returns:
        "YYYY-MM-DD HH:MM:SS" or "unknown"

    Examples:
        >>> format_eta(datetime(2024, 1, 1, 10, 30, 5))
        '2024-01-01 10:30:05'
        >>> format_eta(None)
        'unknown'
    """
    if eta is None:
        return UNKNOWN_TEXT
    return eta.strftime("%Y-%m-%d %H:%M:%S")


def format_progress(progress: float | None, *, precision: int = 1) -> str:
    """Format a progress fraction as a percentage.

    Args:
        progress: Completed fraction (0.0 to 1.0), or None before any update
        precision: Number of decimal places

    Returns:
        Percentage string such as "37.5%", or "-" when progress is None

    Examples:
        >>> format_progress(0.375)
        '37.5%'
        >>> format_progress(None)
        '-'
    """
    if progress is None:
        return "-"
    return f"{progress * 100:.{precision}f}%"
