"""Rolling-window ETA (Estimated Time of Arrival) calculator.

The calculator turns a stream of fractional progress observations into an
estimated time remaining and an absolute completion time. It keeps a
time-bounded history of samples and extrapolates linearly from the oldest
retained sample to the most recent one.

Concurrency model:
- Exactly one producer calls ``update()`` / ``reset()``; no locking is done
- Any number of readers may use ``etr``, ``eta``, ``eta_is_available`` and
  ``estimate()`` concurrently with that producer

Readers never touch the history deque. The left edge, right edge and history
length are published together as one immutable ``SampleWindow`` and replaced
with a single attribute assignment, so a reader sees either the previous
window or the new one, never a mix of both.
"""

import logging
import math
from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta

from eta_calculator.core.calculation import (
    DEFAULT_TOLERANCE,
    UNKNOWN_ETR,
    calculate_eta,
    extrapolate_remaining_ticks,
    is_estimable,
    ticks_to_timedelta,
)
from eta_calculator.core.clock import MonotonicClock, Stopwatch
from eta_calculator.types.models import (
    EtaEstimate,
    RegressionPolicy,
    Sample,
    SampleWindow,
)
from eta_calculator.types.protocols import TickClock

logger = logging.getLogger(__name__)

_EMPTY_WINDOW = SampleWindow(oldest=None, current=None, size=0)


class EtaCalculator:
    """Calculates the estimated time of completion from a rolling average of progress.

    Examples:
        >>> from eta_calculator.core.clock import ManualClock
        >>> clock = ManualClock()
        >>> calculator = EtaCalculator(2, 30.0, clock=clock)
        >>> calculator.update(0.0)
        >>> clock.advance(10)
        >>> calculator.update(0.5)
        >>> calculator.etr
        datetime.timedelta(seconds=10)
    """

    def __init__(
        self,
        minimum_data: int,
        maximum_duration: float,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        regression_policy: RegressionPolicy = RegressionPolicy.CLAMP,
        clock: TickClock | None = None,
        wall_clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the calculator and start its stopwatch at tick 0.

        Args:
            minimum_data: Minimum number of samples required before the ETA
                is trusted (must be at least 1)
            maximum_duration: Width of the rolling window in seconds
                (must be positive)
            tolerance: Progress delta below which two observations are
                treated as identical (0.0 <= tolerance < 1.0)
            regression_policy: Handling of negative remaining time when
                progress moves backward
            clock: Monotonic tick source (defaults to ``MonotonicClock``)
            wall_clock: Wall-clock reading used for the absolute ETA
                (defaults to ``datetime.now``)

        Raises:
            ValueError: If any parameter is out of range
        """
        if minimum_data < 1:
            msg = f"minimum_data must be at least 1, got: {minimum_data}"
            raise ValueError(msg)

        if not maximum_duration > 0:
            msg = f"maximum_duration must be positive, got: {maximum_duration}"
            raise ValueError(msg)

        if not 0.0 <= tolerance < 1.0:
            msg = f"tolerance must be between 0.0 (inclusive) and 1.0 (exclusive), got: {tolerance}"
            raise ValueError(msg)

        self._minimum_data: int = minimum_data
        self._maximum_duration: float = float(maximum_duration)
        self._tolerance: float = tolerance
        self._regression_policy: RegressionPolicy = regression_policy
        self._wall_clock: Callable[[], datetime] = wall_clock or datetime.now

        self._stopwatch: Stopwatch = Stopwatch(clock or MonotonicClock())
        self._maximum_ticks: int = self._stopwatch.seconds_to_ticks(maximum_duration)

        self._history: deque[Sample] = deque()
        self._window: SampleWindow = _EMPTY_WINDOW

        logger.debug(
            "ETA calculator created",
            extra={
                "minimum_data": minimum_data,
                "maximum_duration": self._maximum_duration,
                "tolerance": tolerance,
                "regression_policy": regression_policy.value,
            },
        )

    @property
    def minimum_data(self) -> int:
        """Minimum number of samples required before estimating."""
        return self._minimum_data

    @property
    def maximum_duration(self) -> float:
        """Width of the rolling window in seconds."""
        return self._maximum_duration

    @property
    def tolerance(self) -> float:
        """Progress delta below which observations are treated as identical."""
        return self._tolerance

    @property
    def regression_policy(self) -> RegressionPolicy:
        """Handling of negative remaining time."""
        return self._regression_policy

    @property
    def window(self) -> SampleWindow:
        """Current snapshot of the extrapolation window."""
        return self._window

    @property
    def sample_count(self) -> int:
        """Number of samples currently retained in the history."""
        return self._window.size

    @property
    def samples(self) -> tuple[Sample, ...]:
        """Retained samples, oldest first.

        Copies the history deque, so call it from the producer thread only.
        """
        return tuple(self._history)

    @property
    def eta_is_available(self) -> bool:
        """True when there is enough data to calculate the ETA.

        False while the ETA is still calculating.
        """
        return is_estimable(
            window=self._window,
            minimum_data=self._minimum_data,
            tolerance=self._tolerance,
        )

    @property
    def etr(self) -> timedelta:
        """Estimated time remaining.

        Returns ``timedelta.max`` while the estimate is unavailable.
        """
        return self._etr_for(self._window)

    @property
    def eta(self) -> datetime | None:
        """Estimated time of arrival (completion).

        Returns None while the estimate is unavailable or not representable.
        """
        return calculate_eta(now=self._wall_clock(), etr=self.etr)

    def estimate(self) -> EtaEstimate:
        """Compute every estimation output from a single window snapshot.

        Returns:
            EtaEstimate whose fields are mutually consistent even when an
            update runs concurrently
        """
        window = self._window
        etr = self._etr_for(window)

        return EtaEstimate(
            available=is_estimable(
                window=window,
                minimum_data=self._minimum_data,
                tolerance=self._tolerance,
            ),
            etr=etr,
            eta=calculate_eta(now=self._wall_clock(), etr=etr),
            progress=window.current.progress if window.current is not None else None,
            sample_count=window.size,
        )

    def update(self, progress: float) -> None:
        """Add the current progress to the ETA calculation.

        Args:
            progress: The current level of completion. Must be between 0.0
                and 1.0 inclusive; finite values outside that range are
                clamped.

        Raises:
            ValueError: If progress is NaN or infinite
        """
        if not math.isfinite(progress):
            msg = f"progress must be a finite number, got: {progress}"
            raise ValueError(msg)

        if progress < 0.0 or progress > 1.0:
            clamped = min(1.0, max(0.0, progress))
            logger.debug(
                "Progress out of range, clamping",
                extra={"progress": progress, "clamped": clamped},
            )
            progress = clamped

        window = self._window

        # Unchanged progress is not recorded
        if window.current is not None and abs(window.current.progress - progress) < self._tolerance:
            return

        now = self._stopwatch.elapsed_ticks
        oldest = self._clear_expired(now, window.oldest)

        current = Sample(timestamp=now, progress=float(progress))
        self._history.append(current)

        if len(self._history) == 1:
            oldest = current

        self._window = SampleWindow(oldest=oldest, current=current, size=len(self._history))

    def reset(self) -> None:
        """Clear all collected data and restart the stopwatch."""
        self._history.clear()
        self._window = _EMPTY_WINDOW
        self._stopwatch.restart()

        logger.debug("ETA calculator reset")

    def _etr_for(self, window: SampleWindow) -> timedelta:
        """Calculate the remaining time for a window snapshot."""
        oldest = window.oldest
        current = window.current

        if oldest is None or current is None:
            return UNKNOWN_ETR

        if not is_estimable(window=window, minimum_data=self._minimum_data, tolerance=self._tolerance):
            return UNKNOWN_ETR

        remaining_ticks = extrapolate_remaining_ticks(oldest=oldest, current=current)

        return ticks_to_timedelta(
            remaining_ticks,
            frequency=self._stopwatch.frequency,
            policy=self._regression_policy,
        )

    def _clear_expired(self, now: int, oldest: Sample | None) -> Sample | None:
        """Evict samples older than the rolling window.

        The history never shrinks below ``minimum_data`` entries. The last
        evicted sample becomes the new left edge of the window.

        Args:
            now: Current elapsed ticks
            oldest: Current left edge of the window

        Returns:
            Left edge of the window after eviction
        """
        expired_before = now - self._maximum_ticks
        evicted = 0

        while len(self._history) > self._minimum_data and self._history[0].timestamp < expired_before:
            oldest = self._history.popleft()
            evicted += 1

        if evicted:
            logger.debug(
                "Evicted expired samples",
                extra={"evicted": evicted, "retained": len(self._history)},
            )

        return oldest
