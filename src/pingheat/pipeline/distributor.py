from __future__ import annotations

import queue
import threading
from typing import Protocol

import structlog

from pingheat.metrics import Engine, Sample, Stats
from pingheat.pipeline.channel import Channel, ChannelClosed

logger = structlog.get_logger(__name__)


class StatsSink(Protocol):
    def update(self, stats: Stats) -> None:
        ...


class Distributor:
    """Fans each sample out to the UI, the engine and the exporter.

    The engine and exporter see every sample. The UI sample and stats
    channels are lossy: when either is full the item is dropped so a slow
    renderer can never stall measurement.
    """

    def __init__(
        self,
        engine: Engine,
        samples: Channel[Sample],
        ui_samples: Channel[Sample],
        stats_out: Channel[Stats],
        exporter: StatsSink | None = None,
        poll_interval: float = 0.1,
    ) -> None:
        self.engine = engine
        self.samples = samples
        self.ui_samples = ui_samples
        self.stats_out = stats_out
        self.exporter = exporter
        self.poll_interval = poll_interval
        self.processed = 0
        self.dropped_samples = 0
        self.dropped_stats = 0
        self._close_lock = threading.Lock()
        self._closed = False

    def dispatch(self, sample: Sample) -> Stats:
        if not self.ui_samples.offer(sample):
            self.dropped_samples += 1

        self.engine.add(sample)
        stats = self.engine.stats()
        self.processed += 1

        if not self.stats_out.offer(stats):
            self.dropped_stats += 1

        if self.exporter is not None:
            self.exporter.update(stats)
        return stats

    def run(self, cancel: threading.Event) -> None:
        try:
            while not cancel.is_set():
                try:
                    sample = self.samples.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue
                except ChannelClosed:
                    break
                self.dispatch(sample)
        finally:
            self.close()
            logger.info(
                "distributor_stopped",
                processed=self.processed,
                dropped_samples=self.dropped_samples,
                dropped_stats=self.dropped_stats,
            )

    def close(self) -> bool:
        with self._close_lock:
            if self._closed:
                return False
            self._closed = True
        self.ui_samples.close()
        self.stats_out.close()
        return True
