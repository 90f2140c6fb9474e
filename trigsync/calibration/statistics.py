"""
Running clock-ratio statistics.

The statistics are an immutable value; ``advance`` computes the next
state from the current one and a sample. A sample found to be anomalous
is simply never applied, so rejecting it needs no inverse arithmetic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from trigsync.errors import DegenerateInterval


class StepOutcome(str, Enum):
    """What a calibration step did with its sample."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"  # Anomalous, flagged desynchronization
    SKIPPED = "skipped"  # Already desynchronized or sample cap reached


@dataclass(frozen=True)
class IntervalSample:
    """Inter-row spacings of both devices between ``row - 1`` and ``row``."""

    row: int
    delta1: int
    delta2: int

    @classmethod
    def from_timestamps(
        cls,
        row: int,
        previous1: int,
        current1: int,
        previous2: int,
        current2: int,
    ) -> "IntervalSample":
        return cls(row=row, delta1=current1 - previous1, delta2=current2 - previous2)


@dataclass(frozen=True)
class RunningStatistics:
    """
    Clock-ratio mean and timing-difference spread over accepted samples.

    ``accepted_count`` never includes a sample identified as anomalous.
    """

    ratio_mean: float = 0.0
    diff_sum_squares: float = 0.0
    accepted_count: int = 0
    desynchronized: bool = False

    # Row whose sample triggered desynchronization
    desynchronized_at: Optional[int] = None

    @property
    def scale(self) -> float:
        """RMS timing difference; zero until two samples are accepted."""
        if self.accepted_count < 2:
            return 0.0
        return math.sqrt(self.diff_sum_squares / (self.accepted_count - 1))


@dataclass(frozen=True)
class StepResult:
    """Outcome of applying one sample."""

    state: RunningStatistics
    outcome: StepOutcome
    diff: Optional[float] = None
    deviation: Optional[float] = None  # |diff| in units of scale


def advance(
    state: RunningStatistics,
    sample: IntervalSample,
    min_stats: int = 10,
    max_stats: int = 1000,
    threshold_sigma: float = 5.0,
) -> StepResult:
    """
    Apply one interval sample to the running statistics.

    Raises:
        DegenerateInterval: device 1 spacing is zero, so the clock ratio
            of the sample is undefined.
    """
    if state.desynchronized or state.accepted_count >= max_stats:
        return StepResult(state=state, outcome=StepOutcome.SKIPPED)

    if sample.delta1 == 0:
        raise DegenerateInterval(row=sample.row)

    n = state.accepted_count + 1
    ratio = sample.delta2 / sample.delta1
    ratio_mean = state.ratio_mean + (ratio - state.ratio_mean) / n

    diff = sample.delta2 - sample.delta1 * ratio_mean

    # Only test once enough samples back the scale estimate
    if state.accepted_count >= min_stats:
        scale = state.scale
        if scale > 0:
            deviation = abs(diff) / scale
        else:
            deviation = 0.0 if diff == 0 else math.inf

        if deviation >= threshold_sigma:
            rejected = replace(state, desynchronized=True, desynchronized_at=sample.row)
            return StepResult(
                state=rejected,
                outcome=StepOutcome.REJECTED,
                diff=diff,
                deviation=deviation,
            )

    accepted = RunningStatistics(
        ratio_mean=ratio_mean,
        diff_sum_squares=state.diff_sum_squares + diff * diff,
        accepted_count=n,
    )
    return StepResult(state=accepted, outcome=StepOutcome.ACCEPTED, diff=diff)
