"""Timestamp sources and row sinks for the replay pass."""

from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional, Sequence, TextIO

import structlog

from trigsync.errors import SynchronizationError

logger = structlog.get_logger(__name__)


class TimestampSource(ABC):
    """Position-addressable timestamps of one device, one per row."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of rows."""

    @abstractmethod
    def timestamp(self, row: int) -> int:
        """Timestamp recorded at ``row``."""

    def __iter__(self) -> Iterator[int]:
        for row in range(len(self)):
            yield self.timestamp(row)

    def to_list(self) -> list[int]:
        return list(self)


class SequenceSource(TimestampSource):
    """Timestamps held in memory."""

    def __init__(self, timestamps: Sequence[int], name: str = "memory"):
        self.timestamps = timestamps
        self.name = name

    def __len__(self) -> int:
        return len(self.timestamps)

    def timestamp(self, row: int) -> int:
        return self.timestamps[row]

    def to_list(self) -> list[int]:
        return list(self.timestamps)


def load_timestamps(path: Path | str, column: Optional[str] = None) -> SequenceSource:
    """
    Load timestamps from a file.

    ``.csv`` files are read with a header row and ``column`` selects the
    timestamp column (default: the first column). Any other file is read
    as one integer per line; blank lines and ``#`` comments are skipped.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        timestamps = _read_csv(path, column)
    else:
        timestamps = _read_lines(path)

    logger.info("Loaded timestamps", path=str(path), rows=len(timestamps))
    return SequenceSource(timestamps, name=path.name)


def _read_lines(path: Path) -> list[int]:
    timestamps = []
    with path.open() as handle:
        for line_number, line in enumerate(handle, 1):
            text = line.split("#", 1)[0].strip()
            if not text:
                continue
            timestamps.append(_parse_tick(text, path, line_number))
    return timestamps


def _read_csv(path: Path, column: Optional[str]) -> list[int]:
    with path.open(newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise SynchronizationError(f"No header in {path}", details={"path": str(path)})

        name = column or reader.fieldnames[0]
        if name not in reader.fieldnames:
            raise SynchronizationError(
                f"Column '{name}' not found in {path}",
                details={"path": str(path), "columns": list(reader.fieldnames)},
            )

        # Header is line 1
        return [
            _parse_tick(record[name].strip(), path, line_number)
            for line_number, record in enumerate(reader, 2)
        ]


def _parse_tick(text: str, path: Path, line_number: int) -> int:
    try:
        return int(text)
    except ValueError as e:
        raise SynchronizationError(
            f"Invalid timestamp {text!r} at {path}:{line_number}",
            details={"path": str(path), "line": line_number},
        ) from e


class RowSink(ABC):
    """Destination for the rows forwarded by the replay pass."""

    @abstractmethod
    def write_row(self, row: int, timestamp: int) -> None:
        """Forward one kept row."""

    def close(self) -> None:
        pass


class ListSink(RowSink):
    """Collects forwarded rows in memory."""

    def __init__(self):
        self.rows: list[int] = []
        self.timestamps: list[int] = []

    def write_row(self, row: int, timestamp: int) -> None:
        self.rows.append(row)
        self.timestamps.append(timestamp)


class FileSink(RowSink):
    """Writes one forwarded timestamp per line."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._handle: Optional[TextIO] = None

    def __enter__(self) -> "FileSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def write_row(self, row: int, timestamp: int) -> None:
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("w")
        self._handle.write(f"{timestamp}\n")

    def close(self) -> None:
        if self._handle is None:
            # Nothing kept still produces an (empty) output file
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("")
            return
        self._handle.close()
