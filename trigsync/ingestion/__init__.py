"""
Timestamp ingestion and replay outputs.

Reads per-row trigger timestamps for each device and receives the rows
forwarded by the replay pass.
"""

from trigsync.ingestion.sources import (
    TimestampSource,
    SequenceSource,
    load_timestamps,
    RowSink,
    ListSink,
    FileSink,
)

__all__ = [
    "TimestampSource",
    "SequenceSource",
    "load_timestamps",
    "RowSink",
    "ListSink",
    "FileSink",
]
