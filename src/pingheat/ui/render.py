from __future__ import annotations

from datetime import timedelta

from rich.text import Text

from pingheat.metrics import Stats, to_ms
from pingheat.ui import palette
from pingheat.ui.view import HeatmapView

TITLE = "bold #FFFFFF on #5F5FD7"
TARGET = "bold #00FF00"
LABEL = "#888888"
VALUE = "#FFFFFF"
GOOD_VALUE = "#00FF00"
WARN_VALUE = "#FFFF00"
BAD_VALUE = "#FF0000"
STATUS = "#888888 on #1A1A1A"
STATUS_ERROR = "#FF0000 on #1A1A1A"
HELP_KEY = "bold #5F5FD7"

HELP_KEYS = (
    ("↑/k", "Scroll up (older)"),
    ("↓/j", "Scroll down (newer)"),
    ("PgUp", "Page up"),
    ("PgDn", "Page down"),
    ("Home/g", "Go to oldest"),
    ("End/G", "Go to newest"),
    ("c", "Clear history"),
    ("?/h", "Toggle help"),
    ("q", "Quit"),
)


def render_header(target: str) -> Text:
    text = Text()
    text.append(" pingheat ", style=TITLE)
    text.append(" ")
    text.append(target, style=TARGET)
    return text


def _rtt_ms(ms: float) -> Text:
    return Text(f"{ms:.1f}ms", style=palette.classify_ms(ms))


def _rtt(value: timedelta) -> Text:
    return _rtt_ms(to_ms(value))


def _field(label: str, value: Text) -> Text:
    return Text.assemble((label, LABEL), " ", value)


def render_stats(stats: Stats) -> Text:
    if stats.total_samples == 0:
        return Text("Waiting for data...", style=LABEL)

    if stats.loss_percent > 5:
        loss_style = BAD_VALUE
    elif stats.loss_percent > 0:
        loss_style = WARN_VALUE
    else:
        loss_style = GOOD_VALUE

    first = [
        _field("Sent:", Text(str(stats.total_samples), style=VALUE)),
        _field("Loss:", Text(f"{stats.loss_percent:.1f}%", style=loss_style)),
    ]
    if stats.total_success > 0:
        first += [
            _field("Min:", _rtt(stats.min_rtt)),
            _field("Avg:", _rtt(stats.avg_rtt)),
            _field("Max:", _rtt(stats.max_rtt)),
            _field("σ:", _rtt(stats.std_dev)),
            _field("Jitter:", _rtt(stats.jitter)),
        ]

    second: list[Text] = []
    if stats.total_success > 0:
        p = stats.percentiles
        second += [
            _field("p50:", _rtt_ms(p.p50)),
            _field("p90:", _rtt_ms(p.p90)),
            _field("p95:", _rtt_ms(p.p95)),
            _field("p99:", _rtt_ms(p.p99)),
        ]
    if stats.loss_bursts > 0:
        second.append(_field("Outages:", Text(str(stats.loss_bursts), style=BAD_VALUE)))
    if stats.longest_timeout > 0:
        second.append(_field("MaxDrop:", Text(str(stats.longest_timeout), style=BAD_VALUE)))
    if stats.brownout_bursts > 0:
        second.append(_field("Brownouts:", Text(str(stats.brownout_bursts), style=WARN_VALUE)))
    if stats.current_streak < -1:
        second.append(_field("Streak:", Text(f"-{-stats.current_streak} timeout", style=BAD_VALUE)))
    elif stats.in_brownout:
        second.append(_field("Status:", Text("BROWNOUT", style=WARN_VALUE)))

    text = Text("  ").join(first)
    if second:
        text.append("\n")
        text.append_text(Text("  ").join(second))
    return text


def render_heatmap(view: HeatmapView) -> Text:
    cols, rows = view.grid_dimensions()
    samples = view.visible_samples()
    colors = palette.classify_many([s.rtt_ms for s in samples])

    text = Text(no_wrap=True, overflow="crop")
    idx = 0
    for row in range(rows):
        for _ in range(cols):
            if idx < len(colors):
                text.append(palette.CELL, style=colors[idx])
                idx += 1
            else:
                text.append(" ")
        if row < rows - 1:
            text.append("\n")
    return text


def render_status(view: HeatmapView) -> Text:
    if view.status_message:
        style = STATUS_ERROR if view.status_error else STATUS
        left = Text(f" {view.status_message} ", style=style)
    else:
        info = ""
        if view.can_scroll_up() or view.can_scroll_down():
            info = f"Scroll: {view.scroll_pos}"
        left = Text(f" {info} ", style=STATUS)
    right = Text(" Press ? for help ", style=STATUS)
    padding = max(view.width - left.cell_len - right.cell_len, 1)
    return Text.assemble(left, " " * padding, right)


def render_help() -> Text:
    text = Text()
    text.append("Keyboard Shortcuts", style=TITLE)
    text.append("\n\n")
    for key, desc in HELP_KEYS:
        text.append(f"{key:>8}", style=HELP_KEY)
        text.append("  ")
        text.append(desc, style=LABEL)
        text.append("\n")
    text.append("\n")
    text.append("Legend: ", style=LABEL)
    for color, label in palette.legend():
        text.append(palette.CELL, style=color)
        text.append(f" {label} ")
    return text
