"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols that establish
contracts for core application components without requiring inheritance.
"""

from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class TickClock(Protocol):
    """Protocol for monotonic tick sources.

    Implementations must never go backward. Ticks are integers and
    ``frequency`` gives the number of ticks per second.
    """

    @property
    def frequency(self) -> int:
        """Number of ticks in one second."""
        ...

    def now(self) -> int:
        """Return the current tick count.

        Returns:
            Monotonic tick value (arbitrary origin)
        """
        ...


@runtime_checkable
class EtaEstimator(Protocol):
    """Protocol for progress-driven completion estimators.

    Producers call ``update`` periodically with the completed fraction;
    consumers read ``eta``, ``etr`` and ``eta_is_available``.
    """

    @property
    def eta(self) -> datetime | None:
        """Estimated time of arrival, or None while it cannot be estimated."""
        ...

    @property
    def etr(self) -> timedelta:
        """Estimated time remaining, ``timedelta.max`` while unknown."""
        ...

    @property
    def eta_is_available(self) -> bool:
        """True once enough data has been collected to estimate."""
        ...

    def update(self, progress: float) -> None:
        """Record the current level of completion.

        Args:
            progress: Completed fraction, must be between 0.0 and 1.0 inclusive
        """
        ...

    def reset(self) -> None:
        """Discard all collected data."""
        ...
