from __future__ import annotations

import re
from dataclasses import dataclass

from pingheat.metrics import Sample
from pingheat.parser.base import NO_MATCH, ParseResult, parse_millis

# Reply from 8.8.8.8: bytes=32 time=14ms TTL=118
# Reply from 192.168.1.1: bytes=32 time<1ms TTL=64
REPLY_PATTERN = re.compile(r"Reply from.*time[<=]?(\d+)\s*ms")
TIMEOUT_PATTERN = re.compile(
    r"request timed out|destination.*unreachable|transmit failed|general failure",
    re.IGNORECASE,
)


@dataclass(slots=True)
class WindowsParser:
    """Windows ping prints no sequence field, so matched lines are numbered
    locally, starting at 1."""

    sequence: int = 0

    def parse_line(self, line: str) -> ParseResult:
        match = REPLY_PATTERN.search(line)
        if match:
            rtt = parse_millis(match.group(1))
            if rtt is None:
                return NO_MATCH
            self.sequence += 1
            return Sample.reply(rtt, sequence=self.sequence), True
        if TIMEOUT_PATTERN.search(line):
            self.sequence += 1
            return Sample.lost(sequence=self.sequence), True
        return NO_MATCH
