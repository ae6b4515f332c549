from __future__ import annotations

import re
from dataclasses import dataclass

from pingheat.metrics import UNKNOWN_SEQUENCE, Sample
from pingheat.parser.base import NO_MATCH, ParseResult, parse_millis

# 64 bytes from 8.8.8.8: icmp_seq=1 ttl=118 time=14.3 ms
REPLY_PATTERN = re.compile(r"icmp_seq=(\d+).*time=([0-9.]+)\s*ms")
TIMEOUT_PATTERN = re.compile(r"request timeout|no answer|time.*exceeded|unreachable", re.IGNORECASE)


@dataclass(slots=True)
class LinuxParser:
    """iputils ping. Sequence numbers come from the reply's icmp_seq."""

    def parse_line(self, line: str) -> ParseResult:
        match = REPLY_PATTERN.search(line)
        if match:
            rtt = parse_millis(match.group(2))
            if rtt is None:
                return NO_MATCH
            return Sample.reply(rtt, sequence=int(match.group(1))), True
        if TIMEOUT_PATTERN.search(line):
            return Sample.lost(sequence=UNKNOWN_SEQUENCE), True
        return NO_MATCH
