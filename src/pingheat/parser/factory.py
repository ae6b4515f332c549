from __future__ import annotations

import sys

from pingheat.parser.base import LineParser
from pingheat.parser.darwin import DarwinParser
from pingheat.parser.linux import LinuxParser
from pingheat.parser.windows import WindowsParser

LINUX = "linux"
DARWIN = "darwin"
WINDOWS = "windows"


def parser_for(os_name: str) -> LineParser:
    if os_name == DARWIN:
        return DarwinParser()
    if os_name == WINDOWS:
        return WindowsParser()
    return LinuxParser()


def current_os() -> str:
    if sys.platform == "darwin":
        return DARWIN
    if sys.platform == "win32":
        return WINDOWS
    return LINUX


def default_parser() -> LineParser:
    return parser_for(current_os())
