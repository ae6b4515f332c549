from __future__ import annotations

from pingheat.exporter.prometheus import PrometheusExporter

__all__ = ["PrometheusExporter"]
