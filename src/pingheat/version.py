from __future__ import annotations

__version__ = "0.1.0"

# Overwritten by release builds.
COMMIT = "unknown"
BUILD_TIME = "unknown"


def info(version: str = __version__, commit: str | None = None, build_time: str | None = None) -> str:
    return f"{version} ({commit or COMMIT}) built at {build_time or BUILD_TIME}"
