"""Basic sanity checks for the mock Kibana generator."""

from kibana_exporter.collector.mock_collector import MockCollector
from kibana_exporter.mock.generator import MockKibana


def test_snapshot_returns_valid_data():
    kibana = MockKibana(seed=42)
    snap = kibana.snapshot()

    assert snap.healthy
    assert snap.version.number == "7.17.1"
    assert snap.concurrent_connections >= 0
    assert 0 < snap.heap_used_in_bytes <= snap.heap_total_in_bytes
    assert snap.load_1m >= 0
    assert snap.response_max_in_millis >= snap.response_avg_in_millis > 0


def test_snapshots_accumulate():
    kibana = MockKibana(seed=42)
    snap1 = kibana.snapshot()
    snap2 = kibana.snapshot()

    assert snap2.uptime_in_millis > snap1.uptime_in_millis
    assert snap2.requests_total >= snap1.requests_total
    assert snap2.requests_disconnects >= snap1.requests_disconnects


def test_deterministic_with_same_seed():
    snap_a = MockKibana(seed=99).snapshot()
    snap_b = MockKibana(seed=99).snapshot()

    assert snap_a == snap_b


def test_configurable_state():
    snap = MockKibana(state="yellow").snapshot()
    assert not snap.healthy


def test_mock_collector_is_reachable():
    collector = MockCollector()
    assert collector.state is False
    assert collector.test_connection() is True
    assert collector.state is True
    assert collector.target_name == "mock"
