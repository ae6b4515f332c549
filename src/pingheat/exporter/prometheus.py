from __future__ import annotations

import socket
import threading
from socketserver import ThreadingMixIn
from typing import Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, make_wsgi_app

from pingheat.config import split_host_port
from pingheat.errors import ConfigError, ExporterError
from pingheat.metrics import Stats

logger = structlog.get_logger(__name__)

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]

_TEXT = [("Content-Type", "text/plain; charset=utf-8")]


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _ThreadingWSGIServerV6(_ThreadingWSGIServer):
    address_family = socket.AF_INET6


class _QuietHandler(WSGIRequestHandler):
    # stderr belongs to the terminal UI
    def log_message(self, format: str, *args: object) -> None:
        pass


class PrometheusExporter:
    """Publishes engine snapshots as Prometheus metrics.

    Engine totals are cumulative, so the exported counters advance by the
    difference between successive snapshots.
    """

    def __init__(self, addr: str, target: str, registry: CollectorRegistry | None = None) -> None:
        self.addr = addr
        self.target = target
        self.registry = registry if registry is not None else CollectorRegistry(auto_describe=True)
        self._lock = threading.Lock()
        self._last: Stats | None = None

        def counter(name: str, doc: str) -> Counter:
            return Counter(name, doc, ["target"], registry=self.registry)

        def gauge(name: str, doc: str, labels: tuple[str, ...] = ("target",)) -> Gauge:
            return Gauge(name, doc, list(labels), registry=self.registry)

        self.sent_total = counter("pingheat_ping_sent_total", "Total number of ping packets sent")
        self.success_total = counter("pingheat_ping_success_total", "Total number of successful ping responses")
        self.timeout_total = counter("pingheat_ping_timeout_total", "Total number of ping timeouts")

        self.latency_ms = gauge(
            "pingheat_ping_latency_ms", "Ping latency in milliseconds (min, avg, max)", ("target", "stat")
        )
        self.stddev_ms = gauge("pingheat_ping_stddev_ms", "Standard deviation of ping latency in milliseconds")
        self.variance_ms2 = gauge("pingheat_ping_variance_ms2", "Variance of ping latency in milliseconds squared")
        self.jitter_ms = gauge("pingheat_ping_jitter_ms", "Ping jitter (mean absolute deviation) in milliseconds")
        self.last_rtt_ms = gauge(
            "pingheat_ping_last_rtt_ms", "Most recent ping RTT in milliseconds (-1 if last was timeout)"
        )
        self.p50_ms = gauge("pingheat_ping_latency_p50_ms", "50th percentile (median) latency in milliseconds")
        self.p90_ms = gauge("pingheat_ping_latency_p90_ms", "90th percentile latency in milliseconds")
        self.p95_ms = gauge("pingheat_ping_latency_p95_ms", "95th percentile latency in milliseconds")
        self.p99_ms = gauge("pingheat_ping_latency_p99_ms", "99th percentile latency in milliseconds")

        self.loss_percent = gauge("pingheat_ping_loss_percent", "Packet loss percentage (0-100)")
        self.availability_percent = gauge("pingheat_ping_availability_percent", "Availability percentage (0-100)")

        self.current_streak = gauge(
            "pingheat_ping_current_streak", "Current streak (positive=success, negative=timeout)"
        )
        self.longest_success = gauge(
            "pingheat_ping_longest_success_streak", "Longest consecutive successful pings"
        )
        self.longest_timeout = gauge("pingheat_ping_longest_timeout_streak", "Longest consecutive timeout streak")

        self.loss_bursts = gauge(
            "pingheat_ping_loss_bursts_total", "Number of separate packet loss burst events (outages)"
        )
        self.brownout_samples = gauge(
            "pingheat_ping_brownout_samples_total", "Total number of high-latency samples (>200ms)"
        )
        self.brownout_bursts = gauge(
            "pingheat_ping_brownout_bursts_total", "Number of brownout events (transitions to high latency)"
        )
        self.in_brownout = gauge("pingheat_ping_in_brownout", "Currently in brownout state (1=yes, 0=no)")

        self.uptime_seconds = gauge("pingheat_uptime_seconds", "Seconds since monitoring started")
        self.up = gauge("pingheat_ping_up", "Target is reachable (1=up, 0=down based on last ping)")

        for metric in (self.sent_total, self.success_total, self.timeout_total):
            metric.labels(target=target)

    def update(self, stats: Stats) -> None:
        t = self.target
        with self._lock:
            prev = self._last
            self._last = stats
            _advance(self.sent_total, t, stats.total_samples, prev.total_samples if prev else 0)
            _advance(self.success_total, t, stats.total_success, prev.total_success if prev else 0)
            _advance(self.timeout_total, t, stats.total_timeouts, prev.total_timeouts if prev else 0)

            self.loss_percent.labels(target=t).set(stats.loss_percent)
            self.availability_percent.labels(target=t).set(stats.availability_percent)

            self.current_streak.labels(target=t).set(stats.current_streak)
            self.longest_success.labels(target=t).set(stats.longest_success)
            self.longest_timeout.labels(target=t).set(stats.longest_timeout)

            self.loss_bursts.labels(target=t).set(stats.loss_bursts)
            self.brownout_samples.labels(target=t).set(stats.brownout_samples)
            self.brownout_bursts.labels(target=t).set(stats.brownout_bursts)
            self.in_brownout.labels(target=t).set(1 if stats.in_brownout else 0)

            self.uptime_seconds.labels(target=t).set(stats.uptime_seconds)
            up = stats.current_streak > 0
            self.up.labels(target=t).set(1 if up else 0)

            if stats.total_success > 0:
                self.latency_ms.labels(target=t, stat="min").set(stats.min_rtt_ms)
                self.latency_ms.labels(target=t, stat="avg").set(stats.avg_rtt_ms)
                self.latency_ms.labels(target=t, stat="max").set(stats.max_rtt_ms)
                self.stddev_ms.labels(target=t).set(stats.std_dev_ms)
                self.variance_ms2.labels(target=t).set(stats.variance_ms)
                self.jitter_ms.labels(target=t).set(stats.jitter_ms)
                self.last_rtt_ms.labels(target=t).set(stats.last_rtt_ms if up else -1)
                self.p50_ms.labels(target=t).set(stats.percentiles.p50)
                self.p90_ms.labels(target=t).set(stats.percentiles.p90)
                self.p95_ms.labels(target=t).set(stats.percentiles.p95)
                self.p99_ms.labels(target=t).set(stats.percentiles.p99)

    def wsgi_app(self) -> WSGIApp:
        metrics_app = make_wsgi_app(self.registry)

        def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
            path = environ.get("PATH_INFO") or "/"
            if path == "/metrics":
                return metrics_app(environ, start_response)
            if path == "/health":
                start_response("200 OK", _TEXT)
                return [b"OK"]
            start_response("404 Not Found", _TEXT)
            return [b"404 page not found\n"]

        return app

    def _bind(self) -> WSGIServer:
        try:
            host, port = split_host_port(self.addr)
        except ConfigError as exc:
            raise ExporterError(f"invalid exporter address {self.addr!r}: {exc}") from exc
        server_class = _ThreadingWSGIServerV6 if ":" in host else _ThreadingWSGIServer
        try:
            return make_server(
                host, port, self.wsgi_app(), server_class=server_class, handler_class=_QuietHandler
            )
        except OSError as exc:
            raise ExporterError(f"exporter failed to listen on {self.addr}: {exc}") from exc

    def start(self, cancel: threading.Event) -> None:
        """Serve until ``cancel`` is set."""
        server = self._bind()
        stopper = threading.Thread(
            target=_shutdown_on, args=(server, cancel), name="exporter-stop", daemon=True
        )
        stopper.start()
        logger.info("exporter_listening", addr=self.addr, target=self.target)
        try:
            server.serve_forever(poll_interval=0.25)
        finally:
            server.server_close()
            logger.info("exporter_stopped", addr=self.addr)


def _advance(counter: Counter, target: str, current: int, previous: int) -> None:
    if current > previous:
        counter.labels(target=target).inc(current - previous)


def _shutdown_on(server: WSGIServer, cancel: threading.Event) -> None:
    cancel.wait()
    server.shutdown()
