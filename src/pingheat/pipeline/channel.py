from __future__ import annotations

import queue
import threading
import time
from collections import deque
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

# How often a blocked put re-checks its cancel event.
_CANCEL_POLL_SEC = 0.05


class ChannelClosed(Exception):
    """Raised by ``Channel.get`` once the channel is closed and drained."""


class Channel(Generic[T]):
    """Bounded FIFO shared between threads.

    Producers choose between ``put`` (waits for room) and ``offer`` (drops
    when full). Closing wakes every waiter; items already queued can still
    be received.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, item: T, cancel: threading.Event | None = None) -> bool:
        with self._cond:
            while not self._closed and len(self._items) >= self._capacity:
                if cancel is not None and cancel.is_set():
                    return False
                self._cond.wait(_CANCEL_POLL_SEC if cancel is not None else None)
            if self._closed or (cancel is not None and cancel.is_set()):
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def offer(self, item: T) -> bool:
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, timeout: float | None = None) -> T:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._closed:
                    raise ChannelClosed
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise queue.Empty
                self._cond.wait(remaining)
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def drain(self, limit: int | None = None) -> list[T]:
        """Take up to ``limit`` queued items without waiting."""
        with self._cond:
            n = len(self._items) if limit is None else min(limit, len(self._items))
            items = [self._items.popleft() for _ in range(n)]
            if items:
                self._cond.notify_all()
            return items

    def close(self) -> bool:
        with self._cond:
            if self._closed:
                return False
            self._closed = True
            self._cond.notify_all()
            return True

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
