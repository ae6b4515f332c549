from __future__ import annotations

import queue
import threading

import pytest

from pingheat.pipeline import Channel, ChannelClosed


def test_offer_drops_when_full() -> None:
    ch: Channel[int] = Channel(2)
    assert ch.offer(1)
    assert ch.offer(2)
    assert not ch.offer(3)
    assert ch.drain() == [1, 2]


def test_get_times_out_when_empty() -> None:
    ch: Channel[int] = Channel(1)
    with pytest.raises(queue.Empty):
        ch.get(timeout=0.01)


def test_closed_channel_drains_then_raises() -> None:
    ch: Channel[int] = Channel(3)
    ch.put(1)
    ch.put(2)
    assert ch.close()
    assert not ch.close()
    assert not ch.offer(3)
    assert not ch.put(3)
    assert ch.get() == 1
    assert list(ch) == [2]
    with pytest.raises(ChannelClosed):
        ch.get(timeout=0.01)


def test_put_returns_false_when_cancelled() -> None:
    ch: Channel[int] = Channel(1)
    ch.put(1)
    cancel = threading.Event()
    cancel.set()
    assert not ch.put(2, cancel)
    assert len(ch) == 1


def test_blocked_put_resumes_after_get() -> None:
    ch: Channel[int] = Channel(1)
    ch.put(1)
    done = threading.Event()

    def producer() -> None:
        ch.put(2)
        done.set()

    thread = threading.Thread(target=producer)
    thread.start()
    assert not done.wait(0.05)
    assert ch.get(timeout=1) == 1
    thread.join(timeout=1)
    assert done.is_set()
    assert ch.get(timeout=1) == 2


def test_close_wakes_blocked_getter() -> None:
    ch: Channel[int] = Channel(1)
    errors: list[BaseException] = []

    def consumer() -> None:
        try:
            ch.get()
        except ChannelClosed as exc:
            errors.append(exc)

    thread = threading.Thread(target=consumer)
    thread.start()
    ch.close()
    thread.join(timeout=1)
    assert not thread.is_alive()
    assert len(errors) == 1
