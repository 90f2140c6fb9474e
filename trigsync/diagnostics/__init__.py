"""
Calibration diagnostics.

Collects the distribution of accepted inter-row spacings and
inter-device timing differences seen during calibration.
"""

from trigsync.diagnostics.metrics import (
    MetricsSink,
    NullMetricsSink,
    HistogramSink,
    Histogram,
)

__all__ = [
    "MetricsSink",
    "NullMetricsSink",
    "HistogramSink",
    "Histogram",
]
