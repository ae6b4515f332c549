from __future__ import annotations

import subprocess
import threading
from collections import deque
from datetime import timedelta
from typing import IO, Callable, Protocol

import structlog

from pingheat.errors import PingError
from pingheat.metrics import Sample
from pingheat.parser import LineParser, current_os, parser_for
from pingheat.pipeline.channel import Channel
from pingheat.pipeline.command import build_command, command_env

logger = structlog.get_logger(__name__)

_WAIT_POLL_SEC = 0.1
_TERMINATE_GRACE_SEC = 2.0
_READER_JOIN_SEC = 1.0
# stderr lines kept for the failure message
STDERR_TAIL_LINES = 20


class Process(Protocol):
    stdout: IO[str] | None
    stderr: IO[str] | None

    def wait(self, timeout: float | None = None) -> int:
        ...

    def terminate(self) -> None:
        ...

    def kill(self) -> None:
        ...


CommandFactory = Callable[[list[str], dict[str, str] | None], Process]


def _spawn(argv: list[str], env: dict[str, str] | None) -> Process:
    return subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
        text=True,
        encoding="utf-8",
        errors="replace",
        bufsize=1,
    )


class PingRunner:
    """Runs the system ping and turns its output into samples."""

    def __init__(
        self,
        target: str,
        interval: timedelta,
        parser: LineParser | None = None,
        os_name: str | None = None,
        command_factory: CommandFactory = _spawn,
    ) -> None:
        self.target = target
        self.interval = interval
        self.os_name = os_name or current_os()
        self.parser = parser if parser is not None else parser_for(self.os_name)
        self.command_factory = command_factory
        # stdout and stderr readers share one parser
        self._parse_lock = threading.Lock()

    def command(self) -> list[str]:
        return build_command(self.os_name, self.target, self.interval)

    def run(self, samples: Channel[Sample], cancel: threading.Event) -> None:
        argv = self.command()
        try:
            proc = self.command_factory(argv, command_env(self.os_name))
        except OSError as exc:
            raise PingError(f"failed to start ping command {' '.join(argv)!r}: {exc}") from exc
        logger.info("ping_started", command=argv, target=self.target)

        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        failures: list[Exception] = []
        # set by a failing reader so the child is stopped without cancelling the pipeline
        abort = threading.Event()
        readers = [
            threading.Thread(
                target=self._read,
                args=(proc.stdout, samples, cancel, None, failures, abort),
                name="ping-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=self._read,
                args=(proc.stderr, samples, cancel, stderr_tail, failures, abort),
                name="ping-stderr",
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        code = self._wait(proc, cancel, abort)
        for reader in readers:
            reader.join(_READER_JOIN_SEC)

        if failures:
            exc = failures[0]
            logger.error("ping_output_failed", target=self.target, error=str(exc))
            raise PingError(f"failed to process ping output: {exc}") from exc
        if cancel.is_set():
            logger.info("ping_stopped", target=self.target)
            return
        if code != 0:
            stderr = "\n".join(stderr_tail).strip()
            logger.error("ping_failed", exit_code=code, stderr=stderr)
            if stderr:
                raise PingError(f"ping command failed with exit code {code} (stderr: {stderr})")
            raise PingError(f"ping command failed ({' '.join(argv)}) with exit code {code}")
        logger.info("ping_exited", target=self.target)

    def _read(
        self,
        stream: IO[str] | None,
        samples: Channel[Sample],
        cancel: threading.Event,
        collect: deque[str] | None,
        failures: list[Exception],
        abort: threading.Event,
    ) -> None:
        if stream is None:
            return
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                if collect is not None:
                    collect.append(line)
                # some systems report timeouts on stderr
                with self._parse_lock:
                    sample, ok = self.parser.parse_line(line)
                if ok and sample is not None and not samples.put(sample, cancel):
                    return
        except Exception as exc:
            with self._parse_lock:
                failures.append(exc)
            abort.set()

    def _wait(self, proc: Process, cancel: threading.Event, abort: threading.Event) -> int:
        while True:
            try:
                return proc.wait(timeout=_WAIT_POLL_SEC)
            except subprocess.TimeoutExpired:
                if cancel.is_set() or abort.is_set():
                    return self._stop(proc)

    def _stop(self, proc: Process) -> int:
        proc.terminate()
        try:
            return proc.wait(timeout=_TERMINATE_GRACE_SEC)
        except subprocess.TimeoutExpired:
            logger.warning("ping_kill", target=self.target)
            proc.kill()
            return proc.wait()
