"""
ExportCoordinator: the prometheus_client custom collector for Kibana.

Holds every configured status source, the fixed gauge set, and the target
bound for the scrape in flight. One collection cycle scrapes that target,
maps the payload into the gauges and hands back the families to expose.

Cycles are serialized by a single lock held across the upstream HTTP call,
so two scrapes for different targets never interleave their writes into
the shared gauges. A slow target therefore delays every other scrape.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Dict, Iterable, List, Optional, Sequence

from prometheus_client.metrics_core import Metric

from kibana_exporter.collector.base import StatusSource
from kibana_exporter.errors import ConfigError, DecodeError, TransportError
from kibana_exporter.registry import NAMESPACE, MetricRegistry
from kibana_exporter.status import StatusPayload

log = logging.getLogger(__name__)


class ExportCoordinator:

    def __init__(
        self,
        collectors: Sequence[StatusSource],
        namespace: str = NAMESPACE,
        debug: bool = False,
    ):
        if not collectors:
            raise ConfigError("at least one target is required", field="kibanas")

        self.metrics = MetricRegistry(namespace)
        self.collectors: List[StatusSource] = list(collectors)
        self.by_name: Dict[str, StatusSource] = {c.target_name: c for c in self.collectors}
        self.debug = debug
        self.target: Optional[StatusSource] = None
        # Re-entrant so the endpoint can hold it across set_target + render.
        self.lock = threading.RLock()

    def find_target(self, name: str) -> Optional[StatusSource]:
        """Collector configured under ``name``, or None."""
        return self.by_name.get(name)

    def set_target(self, target: StatusSource):
        with self.lock:
            self.target = target

    def describe(self) -> List[Metric]:
        # Lets CollectorRegistry.register() learn our names without scraping.
        return self.metrics.describe()

    def collect(self) -> Iterable[Metric]:
        return self.run_collection_cycle()

    def run_collection_cycle(self) -> List[Metric]:
        """Scrape the bound target and return the families to expose.

        Never raises: any upstream failure becomes ``status 0`` and an
        error in the log.
        """
        log.debug("a collect() call received")
        with self.lock:
            if self.target is None:
                log.error("target not set: can't scrape")
                return self.metrics.status.collect()

            try:
                payload = self.target.scrape()
            except DecodeError as e:
                log.error("error while decoding status from %s: %s; problematic content: %r",
                          self.target.name(), e, e.content)
                payload = None
            except TransportError as e:
                log.error("error while scraping metrics from %s: %s", self.target.name(), e)
                payload = None

            if payload is None:
                self.metrics.status.set(0.0)
                return self.metrics.status.collect()

            if self.debug:
                log.debug("returned metrics content: %s", json.dumps(payload.as_dict()))

            healthy = self._apply(payload)
            return self._families(healthy)

    def _apply(self, payload: StatusPayload) -> bool:
        """Write the payload into the gauges. Returns True when Kibana is green."""
        log.debug("parsing received metrics from kibana")
        m = self.metrics

        healthy = payload.healthy
        m.status.set(1.0 if healthy else 0.0)
        if not healthy:
            log.debug("kibana %s reports state %r", self.target.target_name, payload.overall_state)
            return False

        m.set_info(payload.version.number, str(payload.version.build_number))
        m.concurrent_connections.set(float(payload.concurrent_connections))
        m.uptime.set(float(payload.uptime_in_millis))
        m.heap_total.set(float(payload.heap_total_in_bytes))
        m.heap_used.set(float(payload.heap_used_in_bytes))
        m.load_1m.set(payload.load_1m)
        m.load_5m.set(payload.load_5m)
        m.load_15m.set(payload.load_15m)
        m.response_avg.set(payload.response_avg_in_millis)
        m.response_max.set(payload.response_max_in_millis)
        m.requests_disconnects.set(float(payload.requests_disconnects))
        m.requests_total.set(float(payload.requests_total))
        return True

    def _families(self, healthy: bool) -> List[Metric]:
        if not healthy:
            return self.metrics.status.collect()
        return self.metrics.collect_all()

    def close(self):
        for collector in self.collectors:
            collector.close()
