"""Shared fixtures: a canned Kibana status document and an in-memory status source."""

import copy

import pytest

from kibana_exporter.collector.base import StatusSource
from kibana_exporter.errors import TransportError
from kibana_exporter.status import StatusPayload

GREEN_STATUS = {
    "name": "kibana-01",
    "version": {
        "number": "7.17.1",
        "build_hash": "78e8422ed4e7d2054bd35b82a91299b3f7bd6231",
        "build_number": 46635,
        "build_snapshot": False,
    },
    "status": {"overall": {"since": "2022-03-06T10:35:22.586Z", "state": "green", "title": "Green"}},
    "metrics": {
        "last_updated": "2022-03-06T10:40:22.586Z",
        "collection_interval_in_millis": 5000,
        "concurrent_connections": 3,
        "process": {
            "uptime_in_millis": 300512.5,
            "memory": {"heap": {"total_in_bytes": 536870912, "used_in_bytes": 201326592}},
        },
        "os": {"load": {"1m": 0.52, "5m": 0.41, "15m": 0.37}},
        "response_times": {"avg_in_millis": 42.5, "max_in_millis": 311},
        "requests": {"disconnects": 2, "total": 1234},
    },
}


class FakeSource(StatusSource):
    """Returns a fixed payload, or raises a fixed error, without any network."""

    def __init__(self, target_name="fake", doc=None, error=None):
        self._target_name = target_name
        self.doc = doc
        self.error = error
        self.calls = 0
        self.state = False

    @property
    def target_name(self):
        return self._target_name

    def scrape(self):
        self.calls += 1
        if self.error is not None:
            self.state = False
            raise self.error
        self.state = True
        return StatusPayload.from_dict(self.doc)

    def name(self):
        return f"fake {self._target_name}"


@pytest.fixture
def green_status():
    return copy.deepcopy(GREEN_STATUS)


@pytest.fixture
def make_source(green_status):
    def _make(target_name="fake", state=None, error=None, **metric_overrides):
        doc = copy.deepcopy(green_status)
        if state is not None:
            doc["status"]["overall"]["state"] = state
        doc["metrics"].update(metric_overrides)
        return FakeSource(target_name=target_name, doc=doc, error=error)
    return _make


@pytest.fixture
def down_source():
    return FakeSource(target_name="down", error=TransportError("connection refused"))
