from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Sequence

import structlog

from pingheat.config import (
    MAX_INTERVAL,
    MIN_INTERVAL,
    MonitorConfig,
    parse_duration,
    split_host_port,
    validate_target,
)
from pingheat.errors import ConfigError, PingheatError
from pingheat.log import DEFAULT_LOG_FILE, configure_logging
from pingheat.version import info

logger = structlog.get_logger(__name__)

EPILOG = """\
examples:
  pingheat google.com                  ping google.com with default settings
  pingheat -i 500ms 8.8.8.8            ping every 500ms
  pingheat --exporter :9090 1.1.1.1    enable Prometheus metrics on :9090
"""


@dataclass(frozen=True, slots=True)
class CliResult:
    config: MonitorConfig
    show_version: bool = False


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigError(message)


def _duration(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="pingheat",
        description="Network latency heatmap visualizer",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    defaults = MonitorConfig()
    parser.add_argument("target", nargs="?", help="Host name or IP address to ping")
    parser.add_argument(
        "-i",
        "--interval",
        type=_duration,
        default=defaults.interval,
        help="Ping interval, 100ms to 1h (e.g. 500ms, 1s, 2m)",
    )
    parser.add_argument("--history", type=int, default=defaults.history_size, help="History buffer size (samples)")
    parser.add_argument("--exporter", metavar="ADDR", default="", help="Enable Prometheus exporter (e.g. :9090)")
    parser.add_argument("--log-file", type=Path, default=DEFAULT_LOG_FILE)
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--help-screen", action="store_true", help="Show help on startup")
    parser.add_argument("--version", action="store_true", help="Show version")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> CliResult:
    args = build_parser().parse_args(argv)
    if args.version:
        return CliResult(config=MonitorConfig(), show_version=True)

    if not args.target:
        raise ConfigError("target host required")
    if args.interval < MIN_INTERVAL:
        raise ConfigError("interval must be at least 100ms")
    if args.interval > MAX_INTERVAL:
        raise ConfigError("interval must be at most 1 hour")
    if args.history < 1:
        raise ConfigError("history must be at least 1 sample")
    validate_target(args.target)

    exporter_enabled = bool(args.exporter)
    if exporter_enabled:
        try:
            split_host_port(args.exporter)
        except ConfigError as exc:
            raise ConfigError(f"invalid exporter address {args.exporter!r}: {exc}") from exc

    config = MonitorConfig(
        target=args.target,
        interval=args.interval,
        history_size=args.history,
        exporter_enabled=exporter_enabled,
        exporter_addr=args.exporter if exporter_enabled else MonitorConfig().exporter_addr,
        show_help=args.help_screen,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    return CliResult(config=config)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        result = parse_args(argv)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if "target host required" in str(exc):
            print(file=sys.stderr)
            build_parser().print_usage(sys.stderr)
        return 1

    if result.show_version:
        print("pingheat", info())
        return 0

    config = result.config
    configure_logging(config.log_level, config.log_file)

    from pingheat.pipeline.app import Monitor

    try:
        Monitor(config).run()
    except PingheatError as exc:
        logger.error("monitor_failed", error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
