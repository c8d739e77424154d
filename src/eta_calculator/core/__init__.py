"""Core estimation components: clocks, calculations, calculator, config and replay."""

from eta_calculator.core.calculation import (
    DEFAULT_TOLERANCE,
    UNKNOWN_ETR,
    calculate_eta,
    extrapolate_remaining_ticks,
    is_estimable,
    ticks_to_timedelta,
)
from eta_calculator.core.clock import ManualClock, MonotonicClock, Stopwatch
from eta_calculator.core.eta_calculator import EtaCalculator

__all__ = [
    "DEFAULT_TOLERANCE",
    "UNKNOWN_ETR",
    "EtaCalculator",
    "ManualClock",
    "MonotonicClock",
    "Stopwatch",
    "calculate_eta",
    "extrapolate_remaining_ticks",
    "is_estimable",
    "ticks_to_timedelta",
]
