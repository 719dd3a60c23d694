"""
Status source backed by the mock generator.
Used for local development on machines without a Kibana instance.
"""

from kibana_exporter.collector.base import StatusSource
from kibana_exporter.mock.generator import MockKibana
from kibana_exporter.status import StatusPayload


class MockCollector(StatusSource):
    """Wraps the mock generator as a standard status source. Always reachable."""

    def __init__(self, target_name: str = "mock", seed: int = 42, state: str = "green"):
        self._target_name = target_name
        self._kibana = MockKibana(seed=seed, state=state)
        self.state = False

    @property
    def target_name(self) -> str:
        return self._target_name

    def scrape(self) -> StatusPayload:
        self.state = True
        return self._kibana.snapshot()

    def name(self) -> str:
        return "Mock Kibana 7.17 (simulated)"
