from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

_ONE_MS = timedelta(milliseconds=1)
_ZERO = timedelta(0)

# Sequence value used by parsers that cannot recover a sequence number.
UNKNOWN_SEQUENCE = -1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Sample:
    timestamp: datetime = field(default_factory=utc_now)
    sequence: int = UNKNOWN_SEQUENCE
    rtt: timedelta = _ZERO
    timeout: bool = False

    @classmethod
    def reply(cls, rtt: timedelta, sequence: int = UNKNOWN_SEQUENCE) -> Sample:
        return cls(timestamp=utc_now(), sequence=sequence, rtt=rtt, timeout=False)

    @classmethod
    def lost(cls, sequence: int = UNKNOWN_SEQUENCE) -> Sample:
        return cls(timestamp=utc_now(), sequence=sequence, rtt=_ZERO, timeout=True)

    @property
    def rtt_ms(self) -> float:
        if self.timeout:
            return -1.0
        return to_ms(self.rtt)


def to_ms(value: timedelta) -> float:
    return value / _ONE_MS


def to_us(value: timedelta) -> int:
    return value // timedelta(microseconds=1)


@dataclass(frozen=True, slots=True)
class Percentiles:
    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0


@dataclass(frozen=True, slots=True)
class Stats:
    total_samples: int = 0
    total_timeouts: int = 0
    total_success: int = 0

    loss_percent: float = 0.0
    availability_percent: float = 0.0

    min_rtt: timedelta = _ZERO
    max_rtt: timedelta = _ZERO
    avg_rtt: timedelta = _ZERO
    std_dev: timedelta = _ZERO
    jitter: timedelta = _ZERO
    last_rtt: timedelta = _ZERO

    min_rtt_ms: float = 0.0
    max_rtt_ms: float = 0.0
    avg_rtt_ms: float = 0.0
    std_dev_ms: float = 0.0
    jitter_ms: float = 0.0
    last_rtt_ms: float = 0.0
    variance_ms: float = 0.0  # ms²

    current_streak: int = 0  # >0 successes, <0 timeouts
    longest_success: int = 0
    longest_timeout: int = 0

    percentiles: Percentiles = field(default_factory=Percentiles)

    loss_bursts: int = 0
    brownout_samples: int = 0
    brownout_bursts: int = 0
    in_brownout: bool = False

    start_time: datetime | None = None
    last_success_time: datetime | None = None
    last_timeout_time: datetime | None = None
    time_since_timeout: timedelta = _ZERO
    uptime_seconds: float = 0.0
