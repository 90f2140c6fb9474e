"""
Error hierarchy for trigger synchronization.

All errors are unrecoverable at the point of detection: the component
that raises them does not retry. Callers decide whether to extend the
calibration prefix, skip a row, or halt the run.
"""

from __future__ import annotations

from typing import Any, Optional


class SynchronizationError(Exception):
    """Base exception for all synchronization errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON reports."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InsufficientSamples(SynchronizationError):
    """Fewer accepted samples than ``min_stats`` at finalize time."""

    def __init__(self, accepted: int, required: int):
        super().__init__(
            f"Not enough samples to calibrate: {accepted} accepted, {required} required",
            details={"accepted": accepted, "required": required},
        )
        self.accepted = accepted
        self.required = required


class InconsistentLengths(SynchronizationError):
    """The two timestamp sequences passed to the aligner differ in length."""

    def __init__(self, length1: int, length2: int):
        super().__init__(
            f"Inconsistent stream lengths: {length1} != {length2}",
            details={"length1": length1, "length2": length2},
        )
        self.length1 = length1
        self.length2 = length2


class DegenerateInterval(SynchronizationError):
    """Two consecutive timestamps of device 1 are equal, so no ratio exists."""

    def __init__(self, row: int):
        super().__init__(
            f"Zero-length interval in stream 1 ending at row {row}",
            details={"row": row},
        )
        self.row = row


class ConfigurationError(SynchronizationError):
    """Invalid synchronization configuration."""
