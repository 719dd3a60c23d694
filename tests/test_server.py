"""Tests for the WSGI exposition endpoint."""

import json
import threading

import httpx
import pytest
from prometheus_client.parser import text_string_to_metric_families

from kibana_exporter.collector.status_collector import StatusCollector
from kibana_exporter.config import TargetProfile
from kibana_exporter.errors import ConfigError
from kibana_exporter.exporter import ExportCoordinator
from kibana_exporter.mock.fake_kibana_server import make_handler, start_in_thread
from kibana_exporter.server import make_app, make_http_server, parse_listen_address


def _call(app, path="/metrics", query=""):
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    environ = {"REQUEST_METHOD": "GET", "PATH_INFO": path, "QUERY_STRING": query}
    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body.decode()


@pytest.fixture
def app(make_source):
    exporter = ExportCoordinator([
        make_source(target_name="first", concurrent_connections=3),
        make_source(target_name="second", concurrent_connections=7),
    ])
    return make_app(exporter)


def test_landing_page(app):
    status, headers, body = _call(app, path="/")
    assert status == "200 OK"
    assert headers["Content-Type"].startswith("text/html")
    assert "href='/metrics'" in body


def test_no_target_serves_first(app):
    status, headers, body = _call(app)
    assert status == "200 OK"
    assert headers["Content-Type"].startswith("text/plain")
    assert "kibana_status 1.0" in body
    assert "kibana_concurrent_connections 3.0" in body


def test_empty_target_serves_first(app):
    _, _, body = _call(app, query="target=")
    assert "kibana_concurrent_connections 3.0" in body


def test_named_target(app):
    status, _, body = _call(app, query="target=second")
    assert status == "200 OK"
    assert "kibana_concurrent_connections 7.0" in body


def test_unknown_target_is_404(app):
    status, _, body = _call(app, query="target=nope")
    assert status == "404 Not Found"
    assert "unknown target: nope" in body
    assert "kibana_status" not in body


def test_other_paths_are_404(app):
    status, _, _ = _call(app, path="/favicon.ico")
    assert status == "404 Not Found"


def test_custom_metrics_path(make_source):
    app = make_app(ExportCoordinator([make_source()]), metrics_path="/probe")
    status, _, body = _call(app, path="/probe")
    assert status == "200 OK"
    assert "kibana_status 1.0" in body
    assert _call(app, path="/metrics")[0] == "404 Not Found"


def test_down_target_still_renders(down_source):
    status, _, body = _call(make_app(ExportCoordinator([down_source])))
    assert status == "200 OK"
    assert "kibana_status 0.0" in body
    assert "kibana_concurrent_connections" not in body


@pytest.mark.parametrize("address, expected", [
    (":9684", ("0.0.0.0", 9684)),
    ("127.0.0.1:8080", ("127.0.0.1", 8080)),
    ("[::1]:9684", ("::1", 9684)),
])
def test_parse_listen_address(address, expected):
    assert parse_listen_address(address) == expected


@pytest.mark.parametrize("address", ["9684", "localhost:", "host:port"])
def test_parse_listen_address_rejects(address):
    with pytest.raises(ConfigError):
        parse_listen_address(address)


def test_end_to_end_over_http(green_status):
    kibana = start_in_thread(make_handler(body=json.dumps(green_status).encode()))
    collector = StatusCollector(TargetProfile.from_url(f"http://127.0.0.1:{kibana.server_port}", name="main"))
    exporter = ExportCoordinator([collector])

    httpd = make_http_server(make_app(exporter), "127.0.0.1:0")
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        response = httpx.get(f"http://127.0.0.1:{httpd.server_port}/metrics?target=main")
        assert response.status_code == 200
        samples = [s for f in text_string_to_metric_families(response.text) for s in f.samples]
        values = {s.name: s.value for s in samples if s.name != "kibana_info"}
        info = [s for s in samples if s.name == "kibana_info"]
        assert values["kibana_status"] == 1.0
        assert values["kibana_requests_total"] == 1234.0
        assert [(s.labels, s.value) for s in info] == [({"version": "7.17.1", "build": "46635"}, 1.0)]
    finally:
        httpd.shutdown()
        httpd.server_close()
        kibana.shutdown()
        exporter.close()
