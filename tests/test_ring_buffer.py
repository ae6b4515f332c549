from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pingheat.buffer import RingBuffer


def filled(capacity: int, items: range) -> RingBuffer[int]:
    buf: RingBuffer[int] = RingBuffer(capacity)
    for item in items:
        buf.push(item)
    return buf


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        RingBuffer(0)


def test_empty_buffer_reads() -> None:
    buf: RingBuffer[str] = RingBuffer(3)
    assert len(buf) == 0
    assert buf.get(0) == (None, False)
    assert buf.get_last() == (None, False)
    assert buf.get_range(0, 5) == []
    assert buf.get_last_n(2) == []
    assert buf.all() == []


def test_overwrites_oldest_when_full() -> None:
    buf = filled(3, range(1, 6))
    assert len(buf) == 3
    assert buf.capacity == 3
    assert buf.all() == [3, 4, 5]
    assert buf.get(0) == (3, True)
    assert buf.get(2) == (5, True)
    assert buf.get(3) == (None, False)
    assert buf.get(-1) == (None, False)
    assert buf.get_last() == (5, True)


def test_get_range_clamps() -> None:
    buf = filled(5, range(10, 15))
    assert buf.get_range(1, 3) == [11, 12, 13]
    assert buf.get_range(-4, 1) == [10, 11]
    assert buf.get_range(3, 99) == [13, 14]
    assert buf.get_range(3, 2) == []


def test_get_last_n() -> None:
    buf = filled(4, range(6))
    assert buf.get_last_n(2) == [4, 5]
    assert buf.get_last_n(10) == [2, 3, 4, 5]
    assert buf.get_last_n(0) == []


def test_clear_keeps_capacity() -> None:
    buf = filled(3, range(5))
    buf.clear()
    assert len(buf) == 0
    assert buf.capacity == 3
    buf.push(7)
    assert buf.all() == [7]


@given(st.integers(min_value=1, max_value=20), st.lists(st.integers(), max_size=80))
def test_holds_most_recent_items_in_order(capacity: int, items: list[int]) -> None:
    buf: RingBuffer[int] = RingBuffer(capacity)
    for item in items:
        buf.push(item)
    expected = items[-capacity:] if items else []
    assert buf.all() == expected
    assert len(buf) == min(len(items), capacity)
