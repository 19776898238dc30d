"""
src/data/ring_buffer.py
───────────────────────
Fixed-capacity FIFO store used for reading history and the alert log.

Not synchronised on its own: callers hold the MonitorState lock.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: T) -> T | None:
        """Append `item`; return the evicted oldest entry when at capacity."""
        evicted = self._items[0] if len(self._items) == self._capacity else None
        self._items.append(item)
        return evicted

    def extend(self, items: list[T]) -> None:
        for item in items:
            self.append(item)

    def oldest_first(self) -> list[T]:
        return list(self._items)

    def newest_first(self, limit: int | None = None) -> list[T]:
        items = list(reversed(self._items))
        return items if limit is None else items[:limit]

    def latest(self) -> T | None:
        return self._items[-1] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))
