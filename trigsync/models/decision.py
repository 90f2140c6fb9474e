"""Per-row keep decisions produced by the stream aligner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class StreamId(IntEnum):
    """The two devices being synchronized."""

    FIRST = 1
    SECOND = 2


@dataclass(frozen=True)
class KeepDecision:
    """
    Which rows of each stream are safe to re-emit.

    Both tuples have one entry per input row; ``True`` means the row
    belongs to a confirmed, time-aligned pair.
    """

    keep1: tuple[bool, ...]
    keep2: tuple[bool, ...]

    def __len__(self) -> int:
        return len(self.keep1)

    def write_status(self, stream: StreamId | int, row: int) -> bool:
        """Whether the replay pass should forward ``row`` of ``stream``."""
        stream = StreamId(stream)
        if stream is StreamId.FIRST:
            return self.keep1[row]
        return self.keep2[row]

    def kept_rows(self, stream: StreamId | int) -> list[int]:
        """Indices of the rows kept for ``stream``, in order."""
        keep = self.keep1 if StreamId(stream) is StreamId.FIRST else self.keep2
        return [row for row, kept in enumerate(keep) if kept]

    @property
    def kept_count1(self) -> int:
        return sum(self.keep1)

    @property
    def kept_count2(self) -> int:
        return sum(self.keep2)
