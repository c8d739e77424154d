"""ETA Calculator - rolling-window estimates of time remaining and time of arrival.

This package turns a stream of fractional progress observations into an
estimated time remaining (ETR) and estimated time of arrival (ETA) using a
linear extrapolation over a time-bounded window of recent samples.
"""

from eta_calculator.core.eta_calculator import EtaCalculator
from eta_calculator.types.models import EtaEstimate, RegressionPolicy, Sample
from eta_calculator.types.protocols import EtaEstimator, TickClock

__all__ = [
    "EtaCalculator",
    "EtaEstimate",
    "EtaEstimator",
    "RegressionPolicy",
    "Sample",
    "TickClock",
]
