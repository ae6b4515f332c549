from __future__ import annotations

import ipaddress
import os
import re
from datetime import timedelta

from pingheat.errors import PingError
from pingheat.parser import DARWIN, WINDOWS

_WINDOWS_TARGET = re.compile(r"[-A-Za-z0-9._:%]+")


def normalize_target(target: str) -> str:
    if len(target) >= 2 and target.startswith("[") and target.endswith("]"):
        return target[1:-1]
    return target


def is_ipv6_literal(target: str) -> bool:
    host = target.strip("[]").partition("%")[0]
    try:
        return isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address)
    except ValueError:
        return False


def format_interval(interval: timedelta) -> str:
    """Seconds with at most two decimals and no trailing zeros: 1, 0.5, 0.25."""
    centis = (interval // timedelta(microseconds=1)) // 10_000
    whole, frac = divmod(centis, 100)
    if frac == 0:
        return str(whole)
    if frac % 10 == 0:
        return f"{whole}.{frac // 10}"
    return f"{whole}.{frac:02d}"


def validate_windows_target(target: str) -> None:
    if not target:
        raise PingError("target host required")
    if not _WINDOWS_TARGET.fullmatch(target):
        raise PingError("target contains unsupported characters for Windows ping")


def quote_cmd_arg(arg: str) -> str:
    return '"' + arg.replace("%", "^%") + '"'


def build_command(os_name: str, target: str, interval: timedelta) -> list[str]:
    target = normalize_target(target)
    if os_name == WINDOWS:
        # code page 437 keeps ping output in English whatever the system locale
        validate_windows_target(target)
        return ["cmd.exe", "/C", "chcp 437 >nul & ping -t " + quote_cmd_arg(target)]

    seconds = format_interval(interval)
    if os_name == DARWIN:
        program = "ping6" if is_ipv6_literal(target) else "ping"
        return [program, "-i", seconds, target]

    argv = ["ping", "-i", seconds, target]
    if is_ipv6_literal(target):
        argv.insert(1, "-6")
    return argv


def command_env(os_name: str) -> dict[str, str] | None:
    """Child environment; Unix pings are pinned to the C locale."""
    if os_name == WINDOWS:
        return None
    return {**os.environ, "LC_ALL": "C", "LANG": "C"}
