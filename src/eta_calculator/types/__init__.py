"""Type definitions and protocols for eta-calculator.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
"""

from eta_calculator.types.models import (
    EtaEstimate,
    RegressionPolicy,
    Sample,
    SampleWindow,
    TraceEntry,
)
from eta_calculator.types.protocols import (
    EtaEstimator,
    TickClock,
)

__all__ = [
    # Data models
    "EtaEstimate",
    "RegressionPolicy",
    "Sample",
    "SampleWindow",
    "TraceEntry",
    # Protocols
    "EtaEstimator",
    "TickClock",
]
