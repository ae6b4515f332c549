from __future__ import annotations

import threading
from datetime import timedelta

from pingheat.metrics import Engine, Sample, Stats
from pingheat.pipeline import Channel, Distributor


class RecordingExporter:
    def __init__(self) -> None:
        self.updates: list[Stats] = []

    def update(self, stats: Stats) -> None:
        self.updates.append(stats)


def make(ui_capacity: int = 10, stats_capacity: int = 10, exporter: RecordingExporter | None = None):
    samples: Channel[Sample] = Channel(10)
    ui: Channel[Sample] = Channel(ui_capacity)
    stats: Channel[Stats] = Channel(stats_capacity)
    engine = Engine()
    dist = Distributor(engine, samples, ui, stats, exporter=exporter, poll_interval=0.01)
    return dist, samples, ui, stats, engine


def reply(ms: int) -> Sample:
    return Sample.reply(timedelta(milliseconds=ms), sequence=ms)


def test_fans_out_every_sample() -> None:
    exporter = RecordingExporter()
    dist, samples, ui, stats, engine = make(exporter=exporter)
    for ms in (10, 20, 30):
        samples.put(reply(ms))
    samples.close()

    dist.run(threading.Event())

    assert [s.sequence for s in ui.drain()] == [10, 20, 30]
    snapshots = stats.drain()
    assert [s.total_samples for s in snapshots] == [1, 2, 3]
    assert [s.total_samples for s in exporter.updates] == [1, 2, 3]
    assert engine.stats().total_samples == 3
    assert ui.closed
    assert stats.closed


def test_saturated_consumers_do_not_block_measurement() -> None:
    dist, samples, ui, stats, engine = make(ui_capacity=1, stats_capacity=1)
    for ms in range(1, 6):
        samples.put(reply(ms))
    samples.close()

    dist.run(threading.Event())

    assert engine.stats().total_samples == 5
    assert dist.processed == 5
    assert dist.dropped_samples == 4
    assert dist.dropped_stats == 4
    assert [s.sequence for s in ui.drain()] == [1]
    assert stats.drain()[0].total_samples == 1


def test_cancel_stops_and_closes_outputs() -> None:
    dist, samples, ui, stats, _ = make()
    cancel = threading.Event()
    thread = threading.Thread(target=dist.run, args=(cancel,))
    thread.start()
    samples.put(reply(5))
    cancel.set()
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert ui.closed
    assert stats.closed
    assert not samples.closed


def test_outputs_closed_exactly_once() -> None:
    dist, samples, _, _, _ = make()
    samples.close()
    cancel = threading.Event()
    cancel.set()

    dist.run(cancel)

    assert not dist.close()
