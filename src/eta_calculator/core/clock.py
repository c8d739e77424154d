"""Monotonic tick sources and a restartable stopwatch.

The calculator never reads the system clock directly. It measures elapsed
ticks through a ``Stopwatch`` wrapped around any ``TickClock``:

- ``MonotonicClock``: production source backed by ``time.monotonic_ns``
- ``ManualClock``: deterministic source advanced explicitly (tests, replay)
"""

import math
import time
from typing import Final

from eta_calculator.types.protocols import TickClock

NANOSECONDS_PER_SECOND: Final[int] = 1_000_000_000


class MonotonicClock:
    """Tick clock backed by the operating system's monotonic clock."""

    @property
    def frequency(self) -> int:
        """Ticks per second (nanosecond resolution)."""
        return NANOSECONDS_PER_SECOND

    def now(self) -> int:
        """Return the current monotonic time in nanoseconds."""
        return time.monotonic_ns()


class ManualClock:
    """Tick clock that only moves when told to.

    Used to simulate elapsed time deterministically instead of sleeping.

    Examples:
        >>> clock = ManualClock()
        >>> clock.advance(1.5)
        >>> clock.now()
        1500000000
    """

    def __init__(self, *, start: int = 0, frequency: int = NANOSECONDS_PER_SECOND) -> None:
        """Initialize the manual clock.

        Args:
            start: Initial tick value
            frequency: Ticks per second (must be positive)

        Raises:
            ValueError: If frequency is not positive
        """
        if frequency <= 0:
            msg = "frequency must be positive"
            raise ValueError(msg)

        self._frequency: int = frequency
        self._ticks: int = start

    @property
    def frequency(self) -> int:
        """Ticks per second."""
        return self._frequency

    def now(self) -> int:
        """Return the current tick value."""
        return self._ticks

    def advance(self, seconds: float) -> None:
        """Move the clock forward.

        Args:
            seconds: Amount of time to advance (must be non-negative)

        Raises:
            ValueError: If seconds is negative or not representable as ticks
        """
        if seconds < 0:
            msg = "clock cannot move backward"
            raise ValueError(msg)
        self._ticks += self._to_ticks(seconds)

    def advance_to(self, seconds: float) -> None:
        """Move the clock to an absolute position measured from tick 0.

        Args:
            seconds: Target position in seconds (must not be in the past)

        Raises:
            ValueError: If the target lies before the current position or is
                not representable as ticks
        """
        target = self._to_ticks(seconds)
        if target < self._ticks:
            msg = "clock cannot move backward"
            raise ValueError(msg)
        self._ticks = target

    def _to_ticks(self, seconds: float) -> int:
        ticks = seconds * self._frequency
        if not math.isfinite(ticks):
            msg = f"cannot represent {seconds}s as clock ticks"
            raise ValueError(msg)
        return round(ticks)


class Stopwatch:
    """Restartable elapsed-tick counter over a ``TickClock``."""

    def __init__(self, clock: TickClock) -> None:
        self._clock: TickClock = clock
        self._origin: int = clock.now()

    @property
    def frequency(self) -> int:
        """Ticks per second of the underlying clock."""
        return self._clock.frequency

    @property
    def elapsed_ticks(self) -> int:
        """Ticks elapsed since creation or the last restart."""
        return self._clock.now() - self._origin

    def restart(self) -> None:
        """Reset elapsed ticks to zero."""
        self._origin = self._clock.now()

    def seconds_to_ticks(self, seconds: float) -> int:
        """Convert a duration in seconds to ticks of the underlying clock."""
        return int(seconds * self._clock.frequency)
