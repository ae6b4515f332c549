from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from pingheat import cli
from pingheat.errors import ConfigError


def test_defaults() -> None:
    result = cli.parse_args(["example.com"])
    cfg = result.config
    assert not result.show_version
    assert cfg.target == "example.com"
    assert cfg.interval == timedelta(seconds=1)
    assert cfg.history_size == 30_000
    assert not cfg.exporter_enabled
    assert cfg.exporter_addr == ":9090"


def test_all_options() -> None:
    result = cli.parse_args(
        [
            "-i",
            "500ms",
            "--history",
            "1000",
            "--exporter",
            "[::1]:9100",
            "--log-file",
            "/tmp/pingheat-test.log",
            "--log-level",
            "debug",
            "--help-screen",
            "2001:db8::1",
        ]
    )
    cfg = result.config
    assert cfg.interval == timedelta(milliseconds=500)
    assert cfg.history_size == 1000
    assert cfg.exporter_enabled
    assert cfg.exporter_addr == "[::1]:9100"
    assert cfg.log_file == Path("/tmp/pingheat-test.log")
    assert cfg.log_level == "DEBUG"
    assert cfg.show_help


def test_long_interval_flag() -> None:
    assert cli.parse_args(["--interval", "2m", "example.com"]).config.interval == timedelta(minutes=2)


def test_version_needs_no_target() -> None:
    assert cli.parse_args(["--version"]).show_version


@pytest.mark.parametrize(
    ("argv", "message"),
    [
        ([], "target host required"),
        (["-i", "50ms", "example.com"], "at least 100ms"),
        (["-i", "2h", "example.com"], "at most 1 hour"),
        (["-i", "soon", "example.com"], "invalid duration"),
        (["--exporter", ":99999", "example.com"], "between 1 and 65535"),
        (["--history", "0", "example.com"], "history"),
        (["bad_host!"], "invalid target"),
    ],
)
def test_rejects_bad_arguments(argv: list[str], message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        cli.parse_args(argv)


def test_main_reports_errors(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-i", "10ms", "example.com"]) == 1
    assert capsys.readouterr().err.startswith("Error: interval must be at least 100ms")


def test_main_prints_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.startswith("pingheat 0.1.0 (")
