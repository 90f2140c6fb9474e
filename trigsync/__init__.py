"""
trigsync

Keeps the trigger streams of two data-acquisition devices pairwise
time-aligned when either device drops or duplicates triggers.
"""

from trigsync.engine import SynchronizationEngine
from trigsync.config import SyncConfig
from trigsync.calibration.estimator import StatisticsEstimator, estimate
from trigsync.alignment.aligner import StreamAligner, align
from trigsync.models.calibration import Calibration, SyncReport
from trigsync.models.decision import KeepDecision, StreamId
from trigsync.errors import (
    SynchronizationError,
    InsufficientSamples,
    InconsistentLengths,
    DegenerateInterval,
    ConfigurationError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "SynchronizationEngine",
    "SyncConfig",
    # Calibration
    "StatisticsEstimator",
    "estimate",
    # Alignment
    "StreamAligner",
    "align",
    # Models
    "Calibration",
    "SyncReport",
    "KeepDecision",
    "StreamId",
    # Errors
    "SynchronizationError",
    "InsufficientSamples",
    "InconsistentLengths",
    "DegenerateInterval",
    "ConfigurationError",
]
