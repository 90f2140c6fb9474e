"""
Clock calibration between two trigger streams.

Estimates the ratio between the devices' clocks and the scale of their
normal timing disagreement, and flags the row where they desynchronize.
"""

from trigsync.calibration.statistics import (
    RunningStatistics,
    IntervalSample,
    StepOutcome,
    StepResult,
    advance,
)
from trigsync.calibration.estimator import StatisticsEstimator, estimate

__all__ = [
    "RunningStatistics",
    "IntervalSample",
    "StepOutcome",
    "StepResult",
    "advance",
    "StatisticsEstimator",
    "estimate",
]
