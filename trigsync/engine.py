"""Two-pass synchronization of a pair of trigger streams."""

from __future__ import annotations

from typing import Optional

import structlog

from trigsync.alignment.aligner import StreamAligner
from trigsync.calibration.estimator import StatisticsEstimator
from trigsync.config import SyncConfig
from trigsync.diagnostics.metrics import MetricsSink
from trigsync.errors import InconsistentLengths
from trigsync.ingestion.sources import RowSink, TimestampSource
from trigsync.models.calibration import Calibration, SyncReport
from trigsync.models.decision import KeepDecision, StreamId

logger = structlog.get_logger(__name__)


class SynchronizationEngine:
    """
    Main interface for synchronizing two trigger streams.

    Runs the phases in strict order:
    - Calibrate the clock ratio and timing scale from the leading rows
    - Align both complete streams, deciding which rows to keep
    - Replay both streams, forwarding kept rows to the outputs

    Example:
        ```python
        engine = SynchronizationEngine(SyncConfig(confirmation_window=5))

        source1 = load_timestamps("device1.txt")
        source2 = load_timestamps("device2.txt")

        with FileSink("out1.txt") as sink1, FileSink("out2.txt") as sink2:
            report = engine.run(source1, source2, sink1, sink2)
        ```
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        metrics: Optional[MetricsSink] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Calibration and alignment settings
            metrics: Optional sink for calibration diagnostics
        """
        self.config = (config or SyncConfig()).validate()
        self.metrics = metrics

        logger.info(
            "SynchronizationEngine initialized",
            min_stats=self.config.min_stats,
            max_stats=self.config.max_stats,
            threshold_sigma=self.config.threshold_sigma,
            confirmation_window=self.config.confirmation_window,
        )

    def calibrate(
        self,
        source1: TimestampSource,
        source2: TimestampSource,
    ) -> Calibration:
        """
        First pass: estimate ratio and scale from the leading rows.

        Reading stops once the estimator can no longer change, either
        because desynchronization was detected or the sample cap was hit.
        """
        nrows = self._check_lengths(source1, source2)
        estimator = StatisticsEstimator.from_config(self.config, metrics=self.metrics)

        for row in range(nrows):
            estimator.observe(source1.timestamp(row), source2.timestamp(row))
            if estimator.is_complete:
                break

        logger.info("Calibration pass complete", rows_read=estimator.rows_seen)

        return estimator.finalize(
            override_ratio=self.config.override_ratio,
            override_scale=self.config.override_scale,
        )

    def align(
        self,
        source1: TimestampSource,
        source2: TimestampSource,
        calibration: Calibration,
    ) -> KeepDecision:
        """Decide which rows of each stream to keep."""
        threshold = calibration.threshold(self.config.threshold_sigma)
        if threshold == 0:
            # diff < 0 is needed to pass, so exactly matching spacings fail
            logger.warning(
                "Zero alignment threshold; set override_scale for noiseless clocks",
                scale=calibration.scale,
            )

        aligner = StreamAligner(
            ratio=calibration.ratio,
            threshold=threshold,
            confirmation_window=self.config.confirmation_window,
        )
        return aligner.align(source1.to_list(), source2.to_list())

    def replay(
        self,
        source1: TimestampSource,
        source2: TimestampSource,
        decision: KeepDecision,
        sink1: RowSink,
        sink2: RowSink,
        calibration: Calibration,
    ) -> SyncReport:
        """Second pass: forward kept rows of each stream in original order."""
        nrows = self._check_lengths(source1, source2)
        if len(decision) != nrows:
            raise InconsistentLengths(nrows, len(decision))

        written1 = 0
        written2 = 0

        for row in range(nrows):
            if decision.write_status(StreamId.FIRST, row):
                sink1.write_row(row, source1.timestamp(row))
                written1 += 1
            if decision.write_status(StreamId.SECOND, row):
                sink2.write_row(row, source2.timestamp(row))
                written2 += 1

        report = SyncReport(
            calibration=calibration,
            threshold=calibration.threshold(self.config.threshold_sigma),
            rows_read=nrows,
            rows_written1=written1,
            rows_written2=written2,
        )

        logger.info(
            "Replay complete",
            rows=nrows,
            written1=written1,
            written2=written2,
        )
        return report

    def run(
        self,
        source1: TimestampSource,
        source2: TimestampSource,
        sink1: RowSink,
        sink2: RowSink,
    ) -> SyncReport:
        """Calibrate, align and replay."""
        calibration = self.calibrate(source1, source2)
        decision = self.align(source1, source2, calibration)
        return self.replay(source1, source2, decision, sink1, sink2, calibration)

    @staticmethod
    def _check_lengths(source1: TimestampSource, source2: TimestampSource) -> int:
        if len(source1) != len(source2):
            raise InconsistentLengths(len(source1), len(source2))
        return len(source1)
