"""Textual front end for the heatmap."""

from __future__ import annotations

import threading

import structlog
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from pingheat.config import MonitorConfig
from pingheat.metrics import Sample, Stats
from pingheat.pipeline.channel import Channel
from pingheat.ui.render import render_header, render_heatmap, render_help, render_stats, render_status
from pingheat.ui.view import HeatmapView

logger = structlog.get_logger(__name__)

REFRESH_INTERVAL_SEC = 0.1


class HelpScreen(ModalScreen[None]):
    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-body {
        width: auto;
        height: auto;
        padding: 1 2;
        border: round #5F5FD7;
        background: #1A1A1A;
    }
    """

    def compose(self) -> ComposeResult:
        with Container(id="help-body"):
            yield Static(render_help())


class HeatmapApp(App[None]):
    """Drains the sample and stats channels and redraws on a fixed tick."""

    CSS = """
    #header, #stats, #status {
        height: auto;
    }

    #heatmap {
        height: auto;
        width: auto;
        border: round #444444;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("question_mark,h", "toggle_help", "Help"),
        Binding("escape", "close_help", "Close help", show=False),
        Binding("c", "clear", "Clear"),
        Binding("up,k", "scroll_up", "Older", show=False),
        Binding("down,j", "scroll_down", "Newer", show=False),
        Binding("pageup", "page_up", "Page up", show=False),
        Binding("pagedown", "page_down", "Page down", show=False),
        Binding("home,g", "scroll_home", "Oldest", show=False),
        Binding("end,G", "scroll_end", "Newest", show=False),
    ]

    def __init__(
        self,
        config: MonitorConfig,
        samples: Channel[Sample],
        stats: Channel[Stats],
    ) -> None:
        super().__init__()
        self.monitor_config = config
        self.sample_channel = samples
        self.stats_channel = stats
        self.heatmap = HeatmapView(config.history_size, show_help=config.show_help)
        self._quit_requested = threading.Event()

    def compose(self) -> ComposeResult:
        yield Static(render_header(self.monitor_config.target), id="header")
        yield Static(id="stats")
        yield Static(id="heatmap")
        yield Static(id="status")

    def on_mount(self) -> None:
        # panels live on the base screen; the help overlay is pushed above it
        self._main_screen = self.screen
        self.set_interval(REFRESH_INTERVAL_SEC, self._refresh_tick)
        self._refresh_tick()
        self._sync_help()

    def _panel(self, selector: str) -> Static:
        return self._main_screen.query_one(selector, Static)

    def request_quit(self) -> None:
        """Ask the app to exit. Safe from any thread.

        A running app exits through its own event loop right away. Before
        the loop starts, or from the app's own thread, the request is left
        for the first refresh tick.
        """
        self._quit_requested.set()
        try:
            self.call_from_thread(self.exit)
        except RuntimeError as exc:
            logger.debug("ui_quit_deferred", reason=str(exc))

    def pull(self) -> None:
        for sample in self.sample_channel.drain():
            self.heatmap.push(sample)
        snapshots = self.stats_channel.drain()
        if snapshots:
            self.heatmap.stats = snapshots[-1]

    def _refresh_tick(self) -> None:
        if self._quit_requested.is_set():
            self.exit()
            return
        self.heatmap.set_size(self.size.width, self.size.height)
        self.pull()
        self._repaint()

    def _repaint(self) -> None:
        self._panel("#stats").update(render_stats(self.heatmap.stats))
        self._panel("#heatmap").update(render_heatmap(self.heatmap))
        self._panel("#status").update(render_status(self.heatmap))

    def _sync_help(self) -> None:
        showing = isinstance(self.screen, HelpScreen)
        if self.heatmap.show_help and not showing:
            self.push_screen(HelpScreen())
        elif not self.heatmap.show_help and showing:
            self.pop_screen()

    def action_toggle_help(self) -> None:
        self.heatmap.toggle_help()
        self._sync_help()

    def action_close_help(self) -> None:
        self.heatmap.close_help()
        self._sync_help()

    def action_clear(self) -> None:
        self.heatmap.clear()
        self._repaint()

    def action_scroll_up(self) -> None:
        self.heatmap.scroll_up()
        self._repaint()

    def action_scroll_down(self) -> None:
        self.heatmap.scroll_down()
        self._repaint()

    def action_page_up(self) -> None:
        self.heatmap.page_up()
        self._repaint()

    def action_page_down(self) -> None:
        self.heatmap.page_down()
        self._repaint()

    def action_scroll_home(self) -> None:
        self.heatmap.scroll_home()
        self._repaint()

    def action_scroll_end(self) -> None:
        self.heatmap.scroll_end()
        self._repaint()


class TextualProgram:
    """Adapts ``HeatmapApp`` to the run/quit interface the monitor drives."""

    def __init__(self, app: HeatmapApp) -> None:
        self.app = app

    def run(self) -> None:
        self.app.run()

    def quit(self) -> None:
        self.app.request_quit()


def build_program(config: MonitorConfig, samples: Channel[Sample], stats: Channel[Stats]) -> TextualProgram:
    return TextualProgram(HeatmapApp(config, samples, stats))
