from __future__ import annotations

from typing import Generic, TypeVar

from pingheat.buffer.rwlock import RWLock

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Fixed-capacity FIFO that overwrites its oldest element when full.

    Index 0 always refers to the oldest element currently held. All reads
    return new lists ordered oldest first.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._data: list[T | None] = [None] * capacity
        self._capacity = capacity
        self._head = 0  # next write position
        self._count = 0
        self._lock = RWLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock.read():
            return self._count

    def push(self, item: T) -> None:
        with self._lock.write():
            self._data[self._head] = item
            self._head = (self._head + 1) % self._capacity
            if self._count < self._capacity:
                self._count += 1

    def _start(self) -> int:
        return (self._head - self._count) % self._capacity

    def _at(self, index: int) -> T:
        return self._data[(self._start() + index) % self._capacity]  # type: ignore[return-value]

    def get(self, index: int) -> tuple[T | None, bool]:
        with self._lock.read():
            if index < 0 or index >= self._count:
                return None, False
            return self._at(index), True

    def get_last(self) -> tuple[T | None, bool]:
        with self._lock.read():
            if self._count == 0:
                return None, False
            return self._data[(self._head - 1) % self._capacity], True

    def get_range(self, start: int, end: int) -> list[T]:
        with self._lock.read():
            start = max(start, 0)
            end = min(end, self._count - 1)
            if self._count == 0 or start > end:
                return []
            return [self._at(i) for i in range(start, end + 1)]

    def get_last_n(self, n: int) -> list[T]:
        with self._lock.read():
            n = min(n, self._count)
            if n <= 0:
                return []
            return [self._at(i) for i in range(self._count - n, self._count)]

    def all(self) -> list[T]:
        with self._lock.read():
            return [self._at(i) for i in range(self._count)]

    def clear(self) -> None:
        with self._lock.write():
            self._head = 0
            self._count = 0
