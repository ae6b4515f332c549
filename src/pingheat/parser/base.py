from __future__ import annotations

import math
from datetime import timedelta
from typing import Protocol

from pingheat.metrics import Sample

ParseResult = tuple[Sample | None, bool]

NO_MATCH: ParseResult = (None, False)


class LineParser(Protocol):
    def parse_line(self, line: str) -> ParseResult:
        ...


def parse_millis(text: str) -> timedelta | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    try:
        return timedelta(milliseconds=value)
    except OverflowError:
        return None
