from __future__ import annotations

import ipaddress
import re
from datetime import timedelta

from pingheat.errors import ConfigError

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# RFC 1123 labels: alphanumeric at both ends, hyphens inside, at most 63 chars.
_HOSTNAME = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$"
)


def parse_duration(text: str) -> timedelta:
    """Parse durations such as ``500ms``, ``1.5s`` or ``1h30m``.

    A bare ``0`` is accepted; every other value needs a unit.
    """
    value = text.strip()
    if value == "0":
        return timedelta(0)
    if not value:
        raise ConfigError(f"invalid duration {text!r}")

    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(value):
        raise ConfigError(f"invalid duration {text!r}")
    return timedelta(seconds=seconds)


def _parse_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def validate_target(target: str) -> str:
    """Check that ``target`` looks like an IP address or hostname.

    No DNS lookups are made. IPv6 literals may be bracketed and may carry a
    non-empty zone id (``fe80::1%en0``).
    """
    if not target:
        raise ConfigError("invalid target format")

    if _parse_ip(target) and "%" not in target:
        return target

    if target.startswith("[") and target.endswith("]"):
        host = target[1:-1]
        if "%" in host:
            host, _, zone = host.partition("%")
            if not zone:
                raise ConfigError(f"invalid target format: {target!r} has empty zone identifier")
        if _parse_ip(host):
            return target
        raise ConfigError(f"invalid target format: {target!r} must be a valid IP address or hostname")

    if "%" in target:
        host, _, zone = target.partition("%")
        if not zone:
            raise ConfigError(f"invalid target format: {target!r} has empty zone identifier")
        if _parse_ip(host):
            return target
        raise ConfigError(
            f"invalid target format: {target!r} must be a valid zoned IPv6 address "
            "(hostnames cannot contain '%')"
        )

    if not _HOSTNAME.match(target.removesuffix(".")):
        raise ConfigError(f"invalid target format: {target!r} must be a valid IP address or hostname")
    return target


def split_host_port(addr: str) -> tuple[str, int]:
    """Split ``host:port``, ``:port`` or ``[v6]:port`` into its parts.

    An empty host means all interfaces.
    """
    if addr.startswith("["):
        close = addr.find("]")
        if close == -1 or not addr[close + 1 :].startswith(":"):
            raise ConfigError(f"invalid address {addr!r}")
        host = addr[1:close]
        port_text = addr[close + 2 :]
    else:
        host, sep, port_text = addr.rpartition(":")
        if not sep or ":" in host:
            raise ConfigError(f"invalid address {addr!r}: missing port")

    if not port_text.isdigit():
        raise ConfigError(f"invalid port {port_text!r} in address {addr!r}")
    port = int(port_text)
    if not 1 <= port <= 65535:
        raise ConfigError(f"port must be between 1 and 65535: {port}")
    return host, port
