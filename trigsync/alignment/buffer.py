"""Fixed-capacity confirmation window over examined row pairs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BufferSlot:
    """One examined row pair and whether it passed the threshold test."""

    index1: int
    index2: int
    passed: bool


class ValidationBuffer:
    """
    Ring buffer of the most recently examined row pairs.

    ``pass_count`` always equals the number of passing slots currently
    held. Slots that were never written count as failing, so a fresh
    buffer is not confirmed until it has been filled.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Buffer capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._slots: list[Optional[BufferSlot]] = [None] * capacity
        self._cursor = 0
        self._size = 0
        self._pass_count = 0

    def __len__(self) -> int:
        return self._size

    @property
    def pass_count(self) -> int:
        return self._pass_count

    def is_full(self) -> bool:
        return self._size == self.capacity

    def is_confirmed(self) -> bool:
        """Full, with every held pair passing."""
        return self.is_full() and self._pass_count == self.capacity

    def evict(self) -> Optional[BufferSlot]:
        """The oldest slot, which the next ``push`` overwrites."""
        if not self.is_full():
            return None
        return self._slots[self._cursor]

    def push(self, index1: int, index2: int, passed: bool) -> Optional[BufferSlot]:
        """Store a pair over the oldest slot, returning the overwritten slot."""
        evicted = self._slots[self._cursor]
        if evicted is not None:
            self._pass_count -= evicted.passed
        else:
            self._size += 1

        self._slots[self._cursor] = BufferSlot(index1, index2, passed)
        self._pass_count += passed
        self._cursor = (self._cursor + 1) % self.capacity
        return evicted

    def slots(self) -> list[BufferSlot]:
        """Held slots from oldest to newest."""
        ordered = self._slots[self._cursor:] + self._slots[:self._cursor]
        return [slot for slot in ordered if slot is not None]
