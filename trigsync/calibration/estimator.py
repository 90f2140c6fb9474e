"""
Clock ratio and timing-scale estimation.

Consumes row pairs in order, tracking the mean ratio between the two
devices' inter-row spacings and the spread of their disagreement, and
stops absorbing samples at the first row whose disagreement is
statistically inconsistent with the rows before it.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from trigsync.calibration.statistics import (
    IntervalSample,
    RunningStatistics,
    StepOutcome,
    StepResult,
    advance,
)
from trigsync.config import SyncConfig
from trigsync.diagnostics.metrics import MetricsSink, NullMetricsSink
from trigsync.errors import InsufficientSamples
from trigsync.models.calibration import Calibration

logger = structlog.get_logger(__name__)


class StatisticsEstimator:
    """
    Estimates the device 2 / device 1 clock ratio and timing scale.

    Rows must be fed in strict order, either one timestamp pair at a
    time with ``observe`` or as explicit intervals with ``step``.
    """

    def __init__(
        self,
        min_stats: int = 10,
        max_stats: int = 1000,
        threshold_sigma: float = 5.0,
        metrics: Optional[MetricsSink] = None,
    ):
        """
        Initialize estimator.

        Args:
            min_stats: Samples required before desynchronization is tested
                and before the estimate can be finalized
            max_stats: Cap on accepted samples
            threshold_sigma: Desynchronization threshold in standard deviations
            metrics: Sink receiving accepted spacings and differences
        """
        self.min_stats = min_stats
        self.max_stats = max_stats
        self.threshold_sigma = threshold_sigma
        self.metrics = metrics or NullMetricsSink()
        self.state = RunningStatistics()
        self.rows_seen = 0
        self._previous: Optional[tuple[int, int]] = None
        self.logger = structlog.get_logger(__name__)

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        metrics: Optional[MetricsSink] = None,
    ) -> "StatisticsEstimator":
        return cls(
            min_stats=config.min_stats,
            max_stats=config.max_stats,
            threshold_sigma=config.threshold_sigma,
            metrics=metrics,
        )

    @property
    def is_complete(self) -> bool:
        """True once no further sample can change the statistics."""
        return self.state.desynchronized or self.state.accepted_count >= self.max_stats

    def observe(self, timestamp1: int, timestamp2: int) -> Optional[StepResult]:
        """
        Feed the timestamps of the next row.

        The first row only primes the previous timestamps; every later
        row produces one interval sample.
        """
        row = self.rows_seen
        self.rows_seen += 1

        previous = self._previous
        self._previous = (timestamp1, timestamp2)
        if previous is None:
            return None

        return self.step(previous[0], timestamp1, previous[1], timestamp2, row=row)

    def step(
        self,
        previous1: int,
        current1: int,
        previous2: int,
        current2: int,
        row: Optional[int] = None,
    ) -> StepResult:
        """Feed one row pair given the previous and current timestamps."""
        if row is None:
            row = self.state.accepted_count + 1

        sample = IntervalSample.from_timestamps(row, previous1, current1, previous2, current2)
        result = advance(
            self.state,
            sample,
            min_stats=self.min_stats,
            max_stats=self.max_stats,
            threshold_sigma=self.threshold_sigma,
        )
        self.state = result.state

        if result.outcome is StepOutcome.ACCEPTED:
            self.metrics.record_spacing(abs(sample.delta1))
            self.metrics.record_difference(abs(result.diff))
        elif result.outcome is StepOutcome.REJECTED:
            self.logger.warning(
                "Desynchronization detected",
                row=row,
                diff=result.diff,
                deviation=result.deviation,
                accepted=self.state.accepted_count,
            )

        return result

    def finalize(
        self,
        override_ratio: float = 0.0,
        override_scale: float = 0.0,
    ) -> Calibration:
        """
        Produce the calibration from the accepted samples.

        Non-zero overrides replace the corresponding estimate.

        Raises:
            InsufficientSamples: fewer than ``min_stats`` samples accepted
        """
        state = self.state
        if state.accepted_count < self.min_stats:
            raise InsufficientSamples(state.accepted_count, self.min_stats)

        ratio = override_ratio if override_ratio != 0 else state.ratio_mean
        scale = override_scale if override_scale != 0 else state.scale

        calibration = Calibration(
            ratio=ratio,
            scale=scale,
            accepted_count=state.accepted_count,
            desynchronized=state.desynchronized,
            desynchronized_at=state.desynchronized_at,
            ratio_overridden=override_ratio != 0,
            scale_overridden=override_scale != 0,
        )

        self.logger.info(
            "Calibration finalized",
            ratio=calibration.ratio,
            scale=calibration.scale,
            accepted=calibration.accepted_count,
            threshold=calibration.threshold(self.threshold_sigma),
            false_positive_rate=Calibration.false_positive_rate(self.threshold_sigma),
        )
        return calibration


def estimate(
    pairs: Iterable[tuple[int, int]],
    config: Optional[SyncConfig] = None,
    metrics: Optional[MetricsSink] = None,
) -> Calibration:
    """
    Calibrate from an iterable of ``(timestamp1, timestamp2)`` rows.

    Stops consuming rows once desynchronization is detected or the
    sample cap is reached.
    """
    config = config or SyncConfig()
    estimator = StatisticsEstimator.from_config(config, metrics=metrics)

    for timestamp1, timestamp2 in pairs:
        estimator.observe(timestamp1, timestamp2)
        if estimator.is_complete:
            break

    return estimator.finalize(
        override_ratio=config.override_ratio,
        override_scale=config.override_scale,
    )
