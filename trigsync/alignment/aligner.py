"""
Row-by-row alignment of two trigger streams.

Walks both timestamp sequences with independent cursors, comparing the
spacing to the next row in each stream after converting device 1 ticks
with the calibrated clock ratio. When the spacings disagree, a local
search tries skipping rows in one or both streams until they agree
again. A row is only kept once it heads a run of consecutive agreeing
pairs as long as the confirmation window.
"""

from __future__ import annotations

from itertools import count
from typing import Iterator, Sequence

import structlog

from trigsync.alignment.buffer import ValidationBuffer
from trigsync.errors import ConfigurationError, InconsistentLengths
from trigsync.models.decision import KeepDecision

logger = structlog.get_logger(__name__)


def recovery_steps() -> Iterator[tuple[int, int]]:
    """
    Candidate ``(step1, step2)`` advances tried after a failed pair.

    Each cycle tries advancing stream 1 only, stream 2 only, then both,
    with the advance distance growing by one per cycle: (2, 1), (1, 2),
    (2, 2), (3, 1), (1, 3), (3, 3), ...
    """
    for cycle in count():
        distance = 2 + cycle
        yield distance, 1
        yield 1, distance
        yield distance, distance


class StreamAligner:
    """
    Decides which rows of two trigger streams stay pairwise aligned.

    The threshold test ``diff < threshold`` is one-sided: a device 2
    spacing shorter than expected always passes.
    """

    def __init__(
        self,
        ratio: float,
        threshold: float,
        confirmation_window: int = 3,
    ):
        """
        Initialize aligner.

        Args:
            ratio: Device 2 ticks per device 1 tick
            threshold: Spacing difference (device 2 ticks) at which a pair fails
            confirmation_window: Consecutive passing pairs required to keep a row
        """
        if confirmation_window < 1:
            raise ConfigurationError(
                f"confirmation_window must be at least 1, got {confirmation_window}",
                details={"confirmation_window": confirmation_window},
            )
        self.ratio = ratio
        self.threshold = threshold
        self.confirmation_window = confirmation_window
        self.logger = structlog.get_logger(__name__)

    def align(
        self,
        times1: Sequence[int],
        times2: Sequence[int],
    ) -> KeepDecision:
        """
        Compute keep decisions for both streams.

        Args:
            times1: Device 1 timestamps, one per row
            times2: Device 2 timestamps, one per row

        Returns:
            KeepDecision with one flag per row of each stream

        Raises:
            InconsistentLengths: the sequences have different lengths
        """
        nrows = len(times1)
        if len(times2) != nrows:
            raise InconsistentLengths(nrows, len(times2))

        keep1 = [False] * nrows
        keep2 = [False] * nrows
        buffer = ValidationBuffer(self.confirmation_window)

        i1 = 0
        i2 = 0
        pairs = 0
        recoveries = 0

        while i1 + 1 < nrows and i2 + 1 < nrows:
            step1, step2 = 1, 1
            passed = self._diff(times1, times2, i1, i2, step1, step2) < self.threshold

            if not passed:
                found = False
                for step1, step2 in recovery_steps():
                    if i1 + step1 >= nrows or i2 + step2 >= nrows:
                        break
                    if self._diff(times1, times2, i1, i2, step1, step2) < self.threshold:
                        found = True
                        break

                if not found:
                    self.logger.info(
                        "Recovery search exhausted the streams",
                        row1=i1,
                        row2=i2,
                    )
                    break

                recoveries += 1
                self.logger.debug(
                    "Recovered alignment",
                    row1=i1,
                    row2=i2,
                    skip1=step1 - 1,
                    skip2=step2 - 1,
                )

            # A pair reached through recovery is recorded as failing so the
            # confirmation run restarts after the discontinuity
            buffer.push(i1, i2, passed)
            pairs += 1

            if buffer.is_confirmed():
                oldest = buffer.evict()
                keep1[oldest.index1] = True
                keep2[oldest.index2] = True

            i1 += step1
            i2 += step2

        decision = KeepDecision(keep1=tuple(keep1), keep2=tuple(keep2))

        self.logger.info(
            "Alignment complete",
            rows=nrows,
            pairs_examined=pairs,
            recoveries=recoveries,
            kept1=decision.kept_count1,
            kept2=decision.kept_count2,
        )
        if nrows > 0 and decision.kept_count1 == 0:
            self.logger.warning("No rows kept", rows=nrows, threshold=self.threshold)

        return decision

    def _diff(
        self,
        times1: Sequence[int],
        times2: Sequence[int],
        i1: int,
        i2: int,
        step1: int,
        step2: int,
    ) -> float:
        """Device 2 spacing minus the ratio-converted device 1 spacing."""
        delta1 = times1[i1 + step1] - times1[i1]
        delta2 = times2[i2 + step2] - times2[i2]
        return delta2 - self.ratio * delta1


def align(
    times1: Sequence[int],
    times2: Sequence[int],
    ratio: float,
    threshold: float,
    confirmation_window: int = 3,
) -> KeepDecision:
    """Align two timestamp sequences; see ``StreamAligner.align``."""
    return StreamAligner(ratio, threshold, confirmation_window).align(times1, times2)
