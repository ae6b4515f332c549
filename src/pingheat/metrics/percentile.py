from __future__ import annotations

import math
from datetime import timedelta
from typing import Protocol

from pingheat.metrics.models import Percentiles, to_us


class LatencyDistribution(Protocol):
    def add(self, value_ms: float) -> None:
        ...

    def percentile(self, pct: float) -> float:
        ...

    def percentiles(self) -> Percentiles:
        ...

    def count(self) -> int:
        ...

    def reset(self) -> None:
        ...


class PercentileCalculator:
    """Exact percentiles over every observation added so far.

    Observations are appended unsorted and sorted lazily on the first query
    after a batch of inserts. Nothing is ever evicted, so memory grows with
    the length of the session. Not thread-safe: callers serialize access.
    """

    def __init__(self) -> None:
        self._values: list[float] = []
        self._sorted = True

    def add(self, value_ms: float) -> None:
        self._values.append(float(value_ms))
        self._sorted = False

    def add_rtt(self, rtt: timedelta) -> None:
        self.add(to_us(rtt) / 1000.0)

    def count(self) -> int:
        return len(self._values)

    def reset(self) -> None:
        self._values.clear()
        self._sorted = True

    def _ensure_sorted(self) -> None:
        if not self._sorted:
            self._values.sort()
            self._sorted = True

    def percentile(self, pct: float) -> float:
        if not self._values:
            return 0.0
        self._ensure_sorted()
        values = self._values
        if pct <= 0:
            return values[0]
        if pct >= 100:
            return values[-1]
        rank = (pct / 100.0) * (len(values) - 1)
        lower = math.floor(rank)
        upper = lower + 1
        if upper >= len(values):
            return values[-1]
        frac = rank - lower
        value = values[lower] + frac * (values[upper] - values[lower])
        # rounding must not push the result past the next order statistic
        return min(value, values[upper])

    def percentiles(self) -> Percentiles:
        return Percentiles(
            p50=self.percentile(50),
            p90=self.percentile(90),
            p95=self.percentile(95),
            p99=self.percentile(99),
        )
