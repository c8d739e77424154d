"""Data models for eta-calculator.

This module defines immutable dataclasses used throughout the application
for type-safe data transfer between components.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class RegressionPolicy(Enum):
    """How a negative remaining time (progress moving backward) is reported."""

    CLAMP = "clamp"
    PROPAGATE = "propagate"


@dataclass(slots=True, frozen=True)
class Sample:
    """Immutable progress observation.

    Represents the progress fraction recorded at a given monotonic tick,
    measured from calculator creation or its last reset.
    """

    timestamp: int
    progress: float


@dataclass(slots=True, frozen=True)
class SampleWindow:
    """Immutable snapshot of the extrapolation window.

    Holds the left edge (``oldest``), the right edge (``current``) and the
    history length at the time the window was published. Readers take one
    reference to this object so the three values are always consistent.
    """

    oldest: Sample | None
    current: Sample | None
    size: int


@dataclass(slots=True, frozen=True)
class EtaEstimate:
    """Immutable estimation result computed from a single window snapshot."""

    available: bool
    etr: timedelta
    eta: datetime | None
    progress: float | None
    sample_count: int


@dataclass(slots=True, frozen=True)
class TraceEntry:
    """One observation from a recorded progress trace.

    ``elapsed`` is measured in seconds from the start of the trace.
    """

    elapsed: float
    progress: float
