from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest

from pingheat.config import MonitorConfig
from pingheat.errors import MonitorError
from pingheat.metrics import Engine, Sample, Stats
from pingheat.pipeline import Channel
from pingheat.pipeline.app import Monitor


class StubRunner:
    def __init__(self, err: Exception | None = None, samples: list[Sample] | None = None) -> None:
        self.err = err
        self.samples = samples or []

    def run(self, samples: Channel[Sample], cancel: threading.Event) -> None:
        if self.err is not None:
            raise self.err
        for sample in self.samples:
            samples.put(sample, cancel)
        cancel.wait()


class StubExporter:
    def __init__(self, start_err: Exception | None = None) -> None:
        self.start_err = start_err
        self.updates = 0

    def start(self, cancel: threading.Event) -> None:
        if self.start_err is not None:
            raise self.start_err
        cancel.wait()

    def update(self, stats: Stats) -> None:
        self.updates += 1


class StubProgram:
    def __init__(self, run_err: Exception | None = None, hang: float = 0.0, until=None) -> None:
        self.block = threading.Event()
        self.run_err = run_err
        self.hang = hang
        self.until = until
        self.quit_called = False

    def run(self) -> None:
        if self.until is not None:
            deadline = time.monotonic() + 5
            while not self.until() and time.monotonic() < deadline:
                time.sleep(0.01)
            self.block.set()
        if self.hang:
            time.sleep(self.hang)
        else:
            self.block.wait(5)
        if self.run_err is not None:
            raise self.run_err

    def quit(self) -> None:
        self.quit_called = True
        if not self.hang:
            self.block.set()


def monitor(runner: StubRunner, program: StubProgram, **kwargs) -> Monitor:
    return Monitor(
        MonitorConfig(target="example.com"),
        runner=runner,
        ui_factory=lambda config, samples, stats: program,
        **kwargs,
    )


def test_runner_error_is_raised_and_ui_closed() -> None:
    program = StubProgram()
    app = monitor(StubRunner(err=RuntimeError("runner failed")), program)

    with pytest.raises(MonitorError, match="ping runner: runner failed") as info:
        app.run()

    assert isinstance(info.value.__cause__, RuntimeError)
    assert program.quit_called
    assert app.cancel.is_set()


def test_exporter_error_is_raised() -> None:
    program = StubProgram()
    app = monitor(StubRunner(), program, exporter=StubExporter(start_err=OSError("address in use")))

    with pytest.raises(MonitorError, match="exporter: address in use"):
        app.run()

    assert program.quit_called


def test_program_error_is_raised() -> None:
    program = StubProgram(run_err=RuntimeError("terminal gone"))
    program.block.set()
    app = monitor(StubRunner(), program)

    with pytest.raises(MonitorError, match="terminal gone"):
        app.run()

    assert app.cancel.is_set()


def test_user_quit_stops_pipeline_cleanly() -> None:
    program = StubProgram()
    program.block.set()
    app = monitor(StubRunner(), program)

    app.run()

    assert app.cancel.is_set()
    assert app.ui_samples.closed
    assert app.stats_out.closed


def test_samples_reach_engine_and_exporter() -> None:
    engine = Engine()
    exporter = StubExporter()
    samples = [Sample.reply(timedelta(milliseconds=ms)) for ms in (10, 20, 30)]
    program = StubProgram(until=lambda: engine.stats().total_samples == 3)
    app = monitor(StubRunner(samples=samples), program, engine=engine, exporter=exporter)

    app.run()

    assert engine.stats().total_samples == 3
    assert exporter.updates == 3


def test_stuck_ui_is_reported() -> None:
    program = StubProgram(hang=0.5)
    app = monitor(StubRunner(err=RuntimeError("boom")), program, shutdown_timeout=0.1)

    with pytest.raises(MonitorError, match="UI failed to shut down") as info:
        app.run()

    assert "original error: ping runner: boom" in str(info.value)
    assert program.quit_called
