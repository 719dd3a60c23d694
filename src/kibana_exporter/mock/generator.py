"""
Mock Kibana status generator.

Produces fake but believable /api/status readings so the exporter can be
run and tested without a Kibana instance. Numbers are loosely based on a
single Kibana 7.17 node behind a small team's dashboards.
"""

import math
import random

from kibana_exporter.status import StatusPayload, VersionInfo

MOCK_VERSION = "7.17.1"
MOCK_BUILD = 46635


class MockKibana:

    def __init__(self, seed: int = 42, state: str = "green"):
        self._rng = random.Random(seed)
        self._tick = 0
        self._uptime_ms = 0.0
        self._requests_total = 0
        self._disconnects = 0
        self.state = state
        self.heap_total_bytes = 512 * 1024 * 1024

    def snapshot(self) -> StatusPayload:
        """Generate one reading, advancing the simulation clock."""
        self._tick += 1
        t = self._tick

        # Each tick is one Prometheus scrape, ~15s apart
        self._uptime_ms += 15_000 + self._rng.uniform(-50, 50)

        # Dashboard traffic follows a slow wave with the odd burst
        base_conn = 6 + 4 * math.sin(t * 0.05)
        burst = self._rng.randint(0, 10) if self._rng.random() > 0.9 else 0
        connections = max(0, int(base_conn + burst))

        new_requests = connections * self._rng.randint(5, 15)
        self._requests_total += new_requests
        if self._rng.random() > 0.95:
            self._disconnects += 1

        # Heap climbs with load and drops back after GC
        heap_used = int(self.heap_total_bytes * min(0.95, 0.35 + connections * 0.02 + self._rng.gauss(0, 0.02)))

        load_1m = max(0.0, 0.4 + connections * 0.05 + self._rng.gauss(0, 0.05))
        avg_ms = max(5.0, 40 + connections * 3 + self._rng.gauss(0, 4))

        return StatusPayload(
            version=VersionInfo(number=MOCK_VERSION, build_number=MOCK_BUILD),
            overall_state=self.state,
            concurrent_connections=connections,
            uptime_in_millis=self._uptime_ms,
            heap_total_in_bytes=self.heap_total_bytes,
            heap_used_in_bytes=heap_used,
            load_1m=load_1m,
            load_5m=load_1m * 0.9,
            load_15m=load_1m * 0.8,
            response_avg_in_millis=avg_ms,
            response_max_in_millis=avg_ms * self._rng.uniform(3.0, 8.0),
            requests_disconnects=self._disconnects,
            requests_total=self._requests_total,
        )
