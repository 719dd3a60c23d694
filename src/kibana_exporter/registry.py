"""
The fixed gauge set this exporter publishes.

Gauges are created unregistered; the ExportCoordinator decides per scrape
which of them go out. Order here is the exposition order.
"""

from __future__ import annotations

import re
from typing import List

from prometheus_client import Gauge
from prometheus_client.metrics_core import Metric

from kibana_exporter.errors import ConfigError

NAMESPACE = "kibana"
INFO_LABELS = ("version", "build")

_NAMESPACE_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class MetricRegistry:

    def __init__(self, namespace: str = NAMESPACE):
        if not namespace or not _NAMESPACE_RE.match(namespace):
            raise ConfigError(f"invalid metrics namespace {namespace!r}", field="namespace")
        self.namespace = namespace

        self.status = self._gauge("status", "Kibana overall status (0: down, 1:up)")
        self.info = self._gauge(
            "info", "Kibana overall info, version build; see labels, always 1", INFO_LABELS
        )
        self.concurrent_connections = self._gauge("concurrent_connections", "Kibana Concurrent Connections")
        self.uptime = self._gauge("millis_uptime", "Kibana uptime in milliseconds")
        self.heap_total = self._gauge("heap_max_in_bytes", "Kibana Heap maximum in bytes")
        self.heap_used = self._gauge("heap_used_in_bytes", "Kibana Heap usage in bytes")
        self.load_1m = self._gauge("os_load_1m", "Kibana load average 1m")
        self.load_5m = self._gauge("os_load_5m", "Kibana load average 5m")
        self.load_15m = self._gauge("os_load_15m", "Kibana load average 15m")
        self.response_avg = self._gauge("response_average", "Kibana average response time in milliseconds")
        self.response_max = self._gauge("response_max", "Kibana maximum response time in milliseconds")
        self.requests_disconnects = self._gauge("requests_disconnects", "Kibana request disconnections count")
        self.requests_total = self._gauge("requests_total", "Kibana total request count")

    def _gauge(self, name: str, documentation: str, labelnames=()) -> Gauge:
        return Gauge(name, documentation, labelnames, namespace=self.namespace, registry=None)

    def secondary(self) -> List[Gauge]:
        """Gauges published only while Kibana reports green, after info."""
        return [
            self.concurrent_connections,
            self.uptime,
            self.heap_total,
            self.heap_used,
            self.load_1m,
            self.load_5m,
            self.load_15m,
            self.response_avg,
            self.response_max,
            self.requests_disconnects,
            self.requests_total,
        ]

    def all(self) -> List[Gauge]:
        return [self.status, self.info] + self.secondary()

    def set_info(self, version: str, build: str):
        # one series only: a new version, or a different target, replaces the old labels
        self.info.clear()
        self.info.labels(version=version, build=build).set(1.0)

    def describe(self) -> List[Metric]:
        families: List[Metric] = []
        for gauge in self.all():
            families.extend(gauge.describe())
        return families

    def collect_all(self) -> List[Metric]:
        families: List[Metric] = []
        for gauge in self.all():
            families.extend(gauge.collect())
        return families
