from __future__ import annotations

from pingheat.parser.base import NO_MATCH, LineParser, ParseResult
from pingheat.parser.darwin import DarwinParser
from pingheat.parser.factory import DARWIN, LINUX, WINDOWS, current_os, default_parser, parser_for
from pingheat.parser.linux import LinuxParser
from pingheat.parser.windows import WindowsParser

__all__ = [
    "DARWIN",
    "DarwinParser",
    "LINUX",
    "LineParser",
    "LinuxParser",
    "NO_MATCH",
    "ParseResult",
    "WINDOWS",
    "WindowsParser",
    "current_os",
    "default_parser",
    "parser_for",
]
