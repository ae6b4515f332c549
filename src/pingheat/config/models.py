from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from pingheat.log import DEFAULT_LOG_FILE

MIN_INTERVAL = timedelta(milliseconds=100)
MAX_INTERVAL = timedelta(hours=1)


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    target: str = ""
    interval: timedelta = timedelta(seconds=1)
    # samples kept for heatmap scroll-back
    history_size: int = 30_000
    metrics_buffer_size: int = 120_000
    sample_buffer_size: int = 100
    ui_buffer_size: int = 100
    exporter_enabled: bool = False
    exporter_addr: str = ":9090"
    show_help: bool = False
    log_level: str = "INFO"
    log_file: Path | None = DEFAULT_LOG_FILE

    def __post_init__(self) -> None:
        for name in ("history_size", "metrics_buffer_size", "sample_buffer_size", "ui_buffer_size"):
            if getattr(self, name) < 1:
                msg = f"{name} must be positive"
                raise ValueError(msg)

    def to_metadata(self) -> dict[str, object]:
        return {
            "target": self.target,
            "interval_sec": self.interval.total_seconds(),
            "history_size": self.history_size,
            "metrics_buffer_size": self.metrics_buffer_size,
            "exporter": self.exporter_addr if self.exporter_enabled else None,
        }
