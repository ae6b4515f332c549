from __future__ import annotations

from typing import Sequence

import numpy as np

# Upper bounds (inclusive, ms) of each latency band; anything above the last is "bad".
THRESHOLDS_MS = (30.0, 80.0, 150.0, 300.0)

EXCELLENT = "#00FF00"
GOOD = "#7FFF00"
FAIR = "#FFFF00"
POOR = "#FF8C00"
BAD = "#FF0000"
TIMEOUT = "#8B008B"

LEVELS = (EXCELLENT, GOOD, FAIR, POOR, BAD)
CELL = "█"

_BINS = np.asarray(THRESHOLDS_MS)


def classify_ms(ms: float) -> str:
    """Colour for an RTT in milliseconds; negative values mean timeout."""
    if ms < 0:
        return TIMEOUT
    return LEVELS[int(np.digitize(ms, _BINS, right=True))]


def classify_many(values_ms: Sequence[float]) -> list[str]:
    if len(values_ms) == 0:
        return []
    values = np.asarray(values_ms, dtype=float)
    levels = np.digitize(values, _BINS, right=True)
    return [TIMEOUT if v < 0 else LEVELS[i] for v, i in zip(values.tolist(), levels.tolist())]


def legend() -> list[tuple[str, str]]:
    return [
        (EXCELLENT, "<30ms"),
        (GOOD, "<80ms"),
        (FAIR, "<150ms"),
        (POOR, "<300ms"),
        (BAD, ">300ms"),
        (TIMEOUT, "timeout"),
    ]
