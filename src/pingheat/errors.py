from __future__ import annotations


class PingheatError(Exception):
    pass


class ConfigError(PingheatError):
    pass


class PingError(PingheatError):
    pass


class ExporterError(PingheatError):
    pass


class MonitorError(PingheatError):
    pass
