"""
Metrics sinks for calibration diagnostics.

The estimator reports the spacing and timing difference of every
accepted sample. Sinks never influence keep decisions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)


class MetricsSink(ABC):
    """Receives per-sample calibration diagnostics."""

    @abstractmethod
    def record_spacing(self, value: float) -> None:
        """Record an accepted inter-row spacing of device 1."""

    @abstractmethod
    def record_difference(self, value: float) -> None:
        """Record an accepted inter-device timing difference."""


class NullMetricsSink(MetricsSink):
    """Discards everything."""

    def record_spacing(self, value: float) -> None:
        pass

    def record_difference(self, value: float) -> None:
        pass


@dataclass
class Histogram:
    """Fixed-width histogram over ``[low, high)``."""

    name: str
    low: float
    high: float
    counts: list[int] = field(default_factory=list)
    underflow: int = 0
    overflow: int = 0

    @property
    def bin_width(self) -> float:
        if not self.counts:
            return 0.0
        return (self.high - self.low) / len(self.counts)

    @property
    def entries(self) -> int:
        return sum(self.counts) + self.underflow + self.overflow

    def fill(self, value: float) -> None:
        if value < self.low:
            self.underflow += 1
            return
        if value >= self.high or self.bin_width == 0:
            self.overflow += 1
            return
        index = int((value - self.low) / self.bin_width)
        self.counts[min(index, len(self.counts) - 1)] += 1

    def bin_edges(self) -> list[float]:
        width = self.bin_width
        return [self.low + i * width for i in range(len(self.counts) + 1)]


class HistogramSink(MetricsSink):
    """
    Collects spacings and differences and bins them on demand.

    Both histograms share a range that ends at the ``range_quantile``
    quantile of the spacings, so the bulk of the spacing distribution
    and the (much narrower) difference distribution can be compared
    on the same axis.
    """

    def __init__(self, bins: int = 50, range_quantile: float = 0.9):
        self.bins = bins
        self.range_quantile = range_quantile
        self.spacings: list[float] = []
        self.differences: list[float] = []

    def record_spacing(self, value: float) -> None:
        self.spacings.append(value)

    def record_difference(self, value: float) -> None:
        self.differences.append(value)

    def histogram_range(self) -> float:
        """Upper edge shared by both histograms."""
        if not self.spacings:
            return 0.0
        ordered = sorted(self.spacings)
        index = max(0, int(self.range_quantile * len(ordered) - 1))
        return ordered[index]

    def histograms(self) -> tuple[Histogram, Histogram]:
        """Build the spacing and difference histograms."""
        high = self.histogram_range()
        spacing_hist = Histogram("SyncSpacing", 0.0, high, [0] * self.bins)
        diff_hist = Histogram("SyncDiffs", 0.0, high, [0] * self.bins)

        for value in self.spacings:
            spacing_hist.fill(value)
        for value in self.differences:
            diff_hist.fill(value)

        logger.debug(
            "Built calibration histograms",
            range=high,
            spacings=len(self.spacings),
            differences=len(self.differences),
        )
        return spacing_hist, diff_hist
