"""
Stream alignment for paired trigger streams.

Decides, row by row, which events of each stream can be re-emitted so
that the two output streams stay pairwise time-aligned:
- Ratio-corrected spacing comparison
- Local recovery search after dropped or duplicated triggers
- Confirmation window before a row is kept
"""

from trigsync.alignment.aligner import StreamAligner, align, recovery_steps
from trigsync.alignment.buffer import ValidationBuffer, BufferSlot

__all__ = [
    "StreamAligner",
    "align",
    "recovery_steps",
    "ValidationBuffer",
    "BufferSlot",
]
