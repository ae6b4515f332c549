from __future__ import annotations

import math
import threading
import time
from datetime import datetime, timedelta
from typing import Callable

from pingheat.buffer.rwlock import RWLock
from pingheat.metrics.models import Sample, Stats, to_us, utc_now
from pingheat.metrics.percentile import LatencyDistribution, PercentileCalculator

# Successful replies slower than this are counted as brownout samples.
BROWNOUT_THRESHOLD_MS = 200.0


class Engine:
    """Running aggregates over the sample stream.

    ``add`` is the single writer; ``stats`` may be called concurrently from
    any number of readers and always sees a fully applied sample.
    """

    def __init__(
        self,
        percentiles: LatencyDistribution | None = None,
        wall_clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._wall_clock = wall_clock
        self._monotonic = monotonic
        self._lock = RWLock()
        # lazy sorting mutates the distribution, so readers take turns on it
        self._percentile_lock = threading.Lock()
        self._percentiles: LatencyDistribution = (
            percentiles if percentiles is not None else PercentileCalculator()
        )
        self._init_state()

    def _init_state(self) -> None:
        self._total_samples = 0
        self._total_timeouts = 0
        self._min_rtt_us: int | None = None
        self._max_rtt_us = 0
        self._sum_rtt_us = 0
        self._sum_rtt_squares = 0  # µs²
        self._last_rtt_us: int | None = None
        self._sum_jitter_us = 0
        self._jitter_count = 0
        self._current_streak = 0
        self._longest_success = 0
        self._longest_timeout = 0
        self._loss_bursts = 0
        self._in_timeout_burst = False
        self._brownout_samples = 0
        self._brownout_bursts = 0
        self._in_brownout = False
        self._start_time = self._wall_clock()
        self._start_mono = self._monotonic()
        self._last_success_time: datetime | None = None
        self._last_timeout_time: datetime | None = None
        self._percentiles.reset()

    def add(self, sample: Sample) -> None:
        with self._lock.write():
            self._total_samples += 1
            if sample.timeout:
                self._add_timeout(sample)
            else:
                self._add_reply(sample)

    def _add_timeout(self, sample: Sample) -> None:
        self._total_timeouts += 1
        self._last_timeout_time = sample.timestamp

        if not self._in_timeout_burst:
            self._loss_bursts += 1
            self._in_timeout_burst = True

        # a lost probe is an outage, never part of a brownout
        self._in_brownout = False

        if self._current_streak > 0:
            self._current_streak = -1
        else:
            self._current_streak -= 1
        self._longest_timeout = max(self._longest_timeout, -self._current_streak)

    def _add_reply(self, sample: Sample) -> None:
        self._last_success_time = sample.timestamp
        self._in_timeout_burst = False

        rtt_us = to_us(sample.rtt)
        if rtt_us / 1000.0 > BROWNOUT_THRESHOLD_MS:
            self._brownout_samples += 1
            if not self._in_brownout:
                self._brownout_bursts += 1
                self._in_brownout = True
        else:
            self._in_brownout = False

        if self._min_rtt_us is None or rtt_us < self._min_rtt_us:
            self._min_rtt_us = rtt_us
        self._max_rtt_us = max(self._max_rtt_us, rtt_us)
        self._sum_rtt_us += rtt_us
        self._sum_rtt_squares += rtt_us * rtt_us

        if self._last_rtt_us is not None:
            self._sum_jitter_us += abs(rtt_us - self._last_rtt_us)
            self._jitter_count += 1
        self._last_rtt_us = rtt_us

        if self._current_streak < 0:
            self._current_streak = 1
        else:
            self._current_streak += 1
        self._longest_success = max(self._longest_success, self._current_streak)

        self._percentiles.add(rtt_us / 1000.0)

    def stats(self) -> Stats:
        with self._lock.read():
            return self._snapshot()

    def _snapshot(self) -> Stats:
        now = self._wall_clock()
        total = self._total_samples
        success = total - self._total_timeouts

        loss = availability = 0.0
        if total > 0:
            loss = self._total_timeouts / total * 100
            availability = 100 - loss

        latency: dict[str, object] = {}
        if success > 0:
            mean_us = self._sum_rtt_us / success
            variance_us = self._sum_rtt_squares / success - mean_us * mean_us
            if variance_us < 0:
                variance_us = 0.0
            std_dev_us = math.sqrt(variance_us)
            min_us = self._min_rtt_us or 0
            last_us = self._last_rtt_us or 0
            with self._percentile_lock:
                percentiles = self._percentiles.percentiles()
            latency = {
                "min_rtt": timedelta(microseconds=min_us),
                "max_rtt": timedelta(microseconds=self._max_rtt_us),
                "avg_rtt": timedelta(microseconds=mean_us),
                "std_dev": timedelta(microseconds=std_dev_us),
                "last_rtt": timedelta(microseconds=last_us),
                "min_rtt_ms": min_us / 1000.0,
                "max_rtt_ms": self._max_rtt_us / 1000.0,
                "avg_rtt_ms": mean_us / 1000.0,
                "std_dev_ms": std_dev_us / 1000.0,
                "variance_ms": variance_us / 1_000_000.0,
                "last_rtt_ms": last_us / 1000.0,
                "percentiles": percentiles,
                "last_success_time": self._last_success_time,
            }

        if self._jitter_count > 0:
            jitter_us = self._sum_jitter_us / self._jitter_count
            latency["jitter"] = timedelta(microseconds=jitter_us)
            latency["jitter_ms"] = jitter_us / 1000.0

        since_timeout = timedelta(0)
        if self._last_timeout_time is not None:
            since_timeout = now - self._last_timeout_time

        return Stats(
            total_samples=total,
            total_timeouts=self._total_timeouts,
            total_success=success,
            loss_percent=loss,
            availability_percent=availability,
            current_streak=self._current_streak,
            longest_success=self._longest_success,
            longest_timeout=self._longest_timeout,
            loss_bursts=self._loss_bursts,
            brownout_samples=self._brownout_samples,
            brownout_bursts=self._brownout_bursts,
            in_brownout=self._in_brownout,
            start_time=self._start_time,
            last_timeout_time=self._last_timeout_time,
            time_since_timeout=since_timeout,
            uptime_seconds=self._monotonic() - self._start_mono,
            **latency,  # type: ignore[arg-type]
        )

    def reset(self) -> None:
        with self._lock.write():
            self._init_state()
