from __future__ import annotations

from pingheat.buffer import RingBuffer
from pingheat.metrics import Sample, Stats

# header (1) + stats (2) + status bar (1) + heatmap border (2) + spare line
RESERVED_ROWS = 7
# heatmap border and padding
RESERVED_COLS = 4


class HeatmapView:
    """Screen-independent heatmap state: history, scroll position, help.

    ``scroll_pos`` counts samples back from the newest; 0 shows the most
    recent window.
    """

    def __init__(self, history_size: int, show_help: bool = False) -> None:
        self.samples: RingBuffer[Sample] = RingBuffer(history_size)
        self.stats = Stats()
        self.width = 0
        self.height = 0
        self.scroll_pos = 0
        self.show_help = show_help
        self.status_message = ""
        self.status_error = False

    def push(self, sample: Sample) -> None:
        self.samples.push(sample)

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def grid_dimensions(self) -> tuple[int, int]:
        cols = max(self.width - RESERVED_COLS, 1)
        rows = max(self.height - RESERVED_ROWS, 1)
        return cols, rows

    def _visible_count(self) -> int:
        cols, rows = self.grid_dimensions()
        return cols * rows

    def _max_scroll(self) -> int:
        return max(len(self.samples) - self._visible_count(), 0)

    def visible_samples(self) -> list[Sample]:
        total = len(self.samples)
        if total == 0:
            return []
        start = max(self._max_scroll() - self.scroll_pos, 0)
        end = min(start + self._visible_count(), total)
        return self.samples.get_range(start, end - 1)

    def can_scroll_up(self) -> bool:
        return self.scroll_pos < self._max_scroll()

    def can_scroll_down(self) -> bool:
        return self.scroll_pos > 0

    def scroll_up(self) -> None:
        if self.can_scroll_up():
            self.scroll_pos += 1

    def scroll_down(self) -> None:
        if self.can_scroll_down():
            self.scroll_pos -= 1

    def page_up(self) -> None:
        _, rows = self.grid_dimensions()
        if self.can_scroll_up():
            self.scroll_pos = min(self.scroll_pos + rows, self._max_scroll())

    def page_down(self) -> None:
        _, rows = self.grid_dimensions()
        self.scroll_pos = max(self.scroll_pos - rows, 0)

    def scroll_home(self) -> None:
        if self._max_scroll() > 0:
            self.scroll_pos = self._max_scroll()

    def scroll_end(self) -> None:
        self.scroll_pos = 0

    def clear(self) -> None:
        """Forget the displayed history. Engine statistics are not affected."""
        self.samples.clear()
        self.scroll_pos = 0
        self.set_status("Cleared")

    def toggle_help(self) -> None:
        self.show_help = not self.show_help

    def close_help(self) -> None:
        self.show_help = False

    def set_status(self, message: str, error: bool = False) -> None:
        self.status_message = message
        self.status_error = error
