from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest
import structlog

from pingheat.log import configure_logging


@pytest.fixture
def clean_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("pingheat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()


def test_events_are_written_as_json_lines(tmp_path: Path, clean_logging: None) -> None:
    log_file = tmp_path / "logs" / "pingheat.log"
    configure_logging("INFO", log_file)

    log = structlog.get_logger("pingheat.tests")
    log.debug("hidden")
    log.info("ping_started", target="example.com")

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["event"] == "ping_started"
    assert event["target"] == "example.com"
    assert event["level"] == "info"
    assert "timestamp" in event
