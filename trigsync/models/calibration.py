"""Calibration and run report models."""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, Field


class Calibration(BaseModel):
    """
    Result of clock calibration between two devices.

    ``ratio`` converts device 1 ticks into device 2 ticks, ``scale`` is
    the RMS disagreement between the two devices' inter-row spacings.
    """

    ratio: float
    scale: float = Field(ge=0.0)

    # Samples that contributed to the estimate
    accepted_count: int = 0

    # Whether an anomalous sample ended the calibration early
    desynchronized: bool = False

    # Row at which desynchronization was detected (None if it was not)
    desynchronized_at: Optional[int] = None

    # Whether ratio/scale came from explicit overrides
    ratio_overridden: bool = False
    scale_overridden: bool = False

    def threshold(self, sigma: float) -> float:
        """Absolute spacing-difference threshold for ``sigma`` deviations."""
        return sigma * self.scale

    @staticmethod
    def false_positive_rate(sigma: float) -> float:
        """One-sided Gaussian tail probability beyond ``sigma`` deviations."""
        return 0.5 * (1.0 - math.erf(sigma / math.sqrt(2.0)))


class SyncReport(BaseModel):
    """Summary of a full calibrate, align and replay run."""

    calibration: Calibration
    threshold: float

    rows_read: int = 0
    rows_written1: int = 0
    rows_written2: int = 0

    @property
    def rows_dropped1(self) -> int:
        return self.rows_read - self.rows_written1

    @property
    def rows_dropped2(self) -> int:
        return self.rows_read - self.rows_written2
