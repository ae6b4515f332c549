from __future__ import annotations

from pingheat.buffer.ring import RingBuffer
from pingheat.buffer.rwlock import RWLock

__all__ = ["RWLock", "RingBuffer"]
