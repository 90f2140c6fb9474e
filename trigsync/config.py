"""Configuration for calibration and alignment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from trigsync.errors import ConfigurationError

ENV_PREFIX = "TRIGSYNC_"


@dataclass
class SyncConfig:
    """Configuration for a synchronization run."""

    # Samples required before the scale estimate is trusted
    min_stats: int = 10

    # Sample cap bounding estimator cost on long runs
    max_stats: int = 1000

    # Desynchronization threshold, in standard deviations
    threshold_sigma: float = 5.0

    # Consecutive passing pairs needed before a row is kept
    confirmation_window: int = 3

    # Explicit non-zero values bypass estimation
    override_ratio: float = 0.0
    override_scale: float = 0.0

    def validate(self) -> "SyncConfig":
        """Check value ranges, returning self for chaining."""
        if self.min_stats < 2:
            raise ConfigurationError(
                f"min_stats must be at least 2, got {self.min_stats}",
                details={"min_stats": self.min_stats},
            )
        if self.max_stats < self.min_stats:
            raise ConfigurationError(
                f"max_stats ({self.max_stats}) is below min_stats ({self.min_stats})",
                details={"min_stats": self.min_stats, "max_stats": self.max_stats},
            )
        if self.threshold_sigma <= 0:
            raise ConfigurationError(
                f"threshold_sigma must be positive, got {self.threshold_sigma}",
                details={"threshold_sigma": self.threshold_sigma},
            )
        if self.confirmation_window < 1:
            raise ConfigurationError(
                f"confirmation_window must be at least 1, got {self.confirmation_window}",
                details={"confirmation_window": self.confirmation_window},
            )
        if self.override_scale < 0:
            raise ConfigurationError(
                f"override_scale cannot be negative, got {self.override_scale}",
                details={"override_scale": self.override_scale},
            )
        return self

    @classmethod
    def from_env(cls, env_file: Optional[Path | str] = None) -> "SyncConfig":
        """
        Build a configuration from ``TRIGSYNC_*`` environment variables.

        A ``.env`` file is loaded first; variables already present in the
        environment take precedence over it.
        """
        load_dotenv(env_file)

        config = cls()
        fields = {
            "min_stats": int,
            "max_stats": int,
            "threshold_sigma": float,
            "confirmation_window": int,
            "override_ratio": float,
            "override_scale": float,
        }

        for name, convert in fields.items():
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                setattr(config, name, convert(raw))
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {ENV_PREFIX + name.upper()}: {raw!r}",
                    details={"variable": ENV_PREFIX + name.upper(), "value": raw},
                ) from e

        return config.validate()
