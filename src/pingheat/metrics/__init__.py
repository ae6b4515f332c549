from __future__ import annotations

from pingheat.metrics.engine import BROWNOUT_THRESHOLD_MS, Engine
from pingheat.metrics.models import UNKNOWN_SEQUENCE, Percentiles, Sample, Stats, to_ms, utc_now
from pingheat.metrics.percentile import LatencyDistribution, PercentileCalculator

__all__ = [
    "BROWNOUT_THRESHOLD_MS",
    "Engine",
    "LatencyDistribution",
    "PercentileCalculator",
    "Percentiles",
    "Sample",
    "Stats",
    "UNKNOWN_SEQUENCE",
    "to_ms",
    "utc_now",
]
