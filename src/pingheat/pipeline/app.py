from __future__ import annotations

import queue
import signal
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Protocol

import structlog

from pingheat.config import MonitorConfig
from pingheat.errors import MonitorError
from pingheat.exporter import PrometheusExporter
from pingheat.metrics import Engine, Sample, Stats
from pingheat.pipeline.channel import Channel
from pingheat.pipeline.distributor import Distributor
from pingheat.pipeline.runner import PingRunner
from pingheat.ui import build_program

logger = structlog.get_logger(__name__)

SHUTDOWN_TIMEOUT_SEC = 5.0
_SUPERVISE_POLL_SEC = 0.1


class Runner(Protocol):
    def run(self, samples: Channel[Sample], cancel: threading.Event) -> None:
        ...


class Exporter(Protocol):
    def start(self, cancel: threading.Event) -> None:
        ...

    def update(self, stats: Stats) -> None:
        ...


class Program(Protocol):
    def run(self) -> None:
        ...

    def quit(self) -> None:
        ...


ProgramFactory = Callable[[MonitorConfig, Channel[Sample], Channel[Stats]], Program]


class Monitor:
    """Wires runner, distributor, exporter and UI together.

    The UI owns the main thread. Everything else runs on worker threads
    that report failures through ``errors``; the first failure cancels the
    pipeline and closes the UI.
    """

    def __init__(
        self,
        config: MonitorConfig,
        runner: Runner | None = None,
        engine: Engine | None = None,
        exporter: Exporter | None = None,
        ui_factory: ProgramFactory | None = None,
        shutdown_timeout: float = SHUTDOWN_TIMEOUT_SEC,
    ) -> None:
        self.config = config
        self.runner: Runner = runner if runner is not None else PingRunner(config.target, config.interval)
        self.engine = engine if engine is not None else Engine()
        if exporter is None and config.exporter_enabled:
            exporter = PrometheusExporter(config.exporter_addr, config.target)
        self.exporter = exporter
        self.ui_factory = ui_factory if ui_factory is not None else build_program
        self.shutdown_timeout = shutdown_timeout

        self.cancel = threading.Event()
        self.samples: Channel[Sample] = Channel(config.sample_buffer_size)
        self.ui_samples: Channel[Sample] = Channel(config.ui_buffer_size)
        self.stats_out: Channel[Stats] = Channel(config.metrics_buffer_size)
        self.errors: queue.Queue[MonitorError] = queue.Queue()
        self.distributor = Distributor(
            self.engine, self.samples, self.ui_samples, self.stats_out, exporter=self.exporter
        )
        self._failure: MonitorError | None = None
        self._ui_timed_out = False

    def run(self) -> None:
        logger.info("monitor_started", **self.config.to_metadata())
        program = self.ui_factory(self.config, self.ui_samples, self.stats_out)
        ui_done = threading.Event()

        with self._signal_handlers():
            workers = self._start_workers()
            supervisor = threading.Thread(
                target=self._supervise, args=(program, ui_done), name="supervisor", daemon=True
            )
            supervisor.start()

            ui_error: Exception | None = None
            try:
                program.run()
            except Exception as exc:
                ui_error = exc
            finally:
                ui_done.set()
                self.cancel.set()

            supervisor.join(self.shutdown_timeout)
            self._join(workers)

        logger.info("monitor_stopped", failed=self._failure is not None)
        self._raise_for(ui_error)

    def _start_workers(self) -> list[threading.Thread]:
        specs: list[tuple[str, Callable[[], None], Callable[[], object] | None]] = [
            ("ping runner", lambda: self.runner.run(self.samples, self.cancel), self.samples.close),
            ("distributor", lambda: self.distributor.run(self.cancel), None),
        ]
        if self.exporter is not None:
            exporter = self.exporter
            specs.append(("exporter", lambda: exporter.start(self.cancel), None))

        workers = []
        for name, target, on_exit in specs:
            thread = threading.Thread(
                target=self._guard, args=(name, target, on_exit), name=name.replace(" ", "-"), daemon=True
            )
            thread.start()
            workers.append(thread)
        return workers

    def _guard(self, name: str, target: Callable[[], None], on_exit: Callable[[], object] | None) -> None:
        try:
            target()
        except Exception as exc:
            logger.error("worker_failed", worker=name, error=str(exc))
            failure = MonitorError(f"{name}: {exc}")
            failure.__cause__ = exc
            self.errors.put(failure)
        finally:
            if on_exit is not None:
                on_exit()

    def _supervise(self, program: Program, ui_done: threading.Event) -> None:
        while not ui_done.is_set():
            try:
                self._failure = self.errors.get(timeout=_SUPERVISE_POLL_SEC)
            except queue.Empty:
                if self.cancel.is_set():
                    break
                continue
            self.cancel.set()
            break
        if ui_done.is_set():
            return

        program.quit()
        if not ui_done.wait(self.shutdown_timeout):
            self._ui_timed_out = True
            logger.error("ui_shutdown_timeout", timeout_sec=self.shutdown_timeout)

    def _join(self, workers: list[threading.Thread]) -> None:
        for worker in workers:
            worker.join(self.shutdown_timeout)
            if worker.is_alive():
                logger.error("worker_shutdown_timeout", worker=worker.name, timeout_sec=self.shutdown_timeout)

    def _raise_for(self, ui_error: Exception | None) -> None:
        timeout_note = f"UI failed to shut down within {self.shutdown_timeout:g} seconds"
        failure = self._failure
        if failure is None:
            if ui_error is not None:
                raise MonitorError(f"ui: {ui_error}") from ui_error
            if self._ui_timed_out:
                raise MonitorError(timeout_note)
            return

        cause = failure.__cause__
        if ui_error is not None:
            raise MonitorError(f"original error: {failure}; failed to shut down UI: {ui_error}") from cause
        if self._ui_timed_out:
            raise MonitorError(f"original error: {failure}; {timeout_note}") from cause
        raise failure

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handle(signum: int, frame: object) -> None:
            logger.info("signal_received", signal=signal.Signals(signum).name)
            self.cancel.set()

        previous = {sig: signal.signal(sig, handle) for sig in (signal.SIGINT, signal.SIGTERM)}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
