from __future__ import annotations

from datetime import timedelta

import pytest

from pingheat.config import MonitorConfig, parse_duration, split_host_port, validate_target
from pingheat.errors import ConfigError


def test_defaults() -> None:
    cfg = MonitorConfig()
    assert cfg.interval == timedelta(seconds=1)
    assert cfg.history_size == 30_000
    assert cfg.metrics_buffer_size == 120_000
    assert cfg.exporter_addr == ":9090"
    assert not cfg.exporter_enabled
    assert not cfg.show_help


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        MonitorConfig(history_size=0)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("500ms", timedelta(milliseconds=500)),
        ("1s", timedelta(seconds=1)),
        ("1.5s", timedelta(milliseconds=1500)),
        ("2m", timedelta(minutes=2)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("250000us", timedelta(milliseconds=250)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration(text: str, expected: timedelta) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "1x", "ms", "1s garbage", "-1s"])
def test_parse_duration_rejects(text: str) -> None:
    with pytest.raises(ConfigError):
        parse_duration(text)


@pytest.mark.parametrize(
    "target",
    [
        "8.8.8.8",
        "2001:db8::1",
        "[2001:db8::1]",
        "fe80::1%en0",
        "[fe80::1%en0]",
        "example.com",
        "example.com.",
        "localhost",
        "my-host-01.internal",
    ],
)
def test_valid_targets(target: str) -> None:
    assert validate_target(target) == target


@pytest.mark.parametrize(
    "target",
    [
        "",
        "[example.com]",
        "fe80::1%",
        "[fe80::1%]",
        "host%eth0",
        "-bad.example",
        "bad-.example",
        "under_score.example",
        "a..b",
    ],
)
def test_invalid_targets(target: str) -> None:
    with pytest.raises(ConfigError):
        validate_target(target)


@pytest.mark.parametrize(
    ("addr", "expected"),
    [
        (":9090", ("", 9090)),
        ("localhost:9090", ("localhost", 9090)),
        ("0.0.0.0:1", ("0.0.0.0", 1)),
        ("[::1]:65535", ("::1", 65535)),
    ],
)
def test_split_host_port(addr: str, expected: tuple[str, int]) -> None:
    assert split_host_port(addr) == expected


@pytest.mark.parametrize("addr", ["9090", ":0", ":65536", "::1:9090", "[::1]9090", "host:", "host:abc"])
def test_split_host_port_rejects(addr: str) -> None:
    with pytest.raises(ConfigError):
        split_host_port(addr)
