from __future__ import annotations

from pingheat.config.models import MAX_INTERVAL, MIN_INTERVAL, MonitorConfig
from pingheat.config.parsing import parse_duration, split_host_port, validate_target

__all__ = [
    "MAX_INTERVAL",
    "MIN_INTERVAL",
    "MonitorConfig",
    "parse_duration",
    "split_host_port",
    "validate_target",
]
