"""Result models for calibration and alignment."""

from trigsync.models.calibration import Calibration, SyncReport
from trigsync.models.decision import KeepDecision, StreamId

__all__ = [
    "Calibration",
    "SyncReport",
    "KeepDecision",
    "StreamId",
]
