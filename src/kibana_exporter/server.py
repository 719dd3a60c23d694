"""
HTTP exposition endpoint.

A small WSGI app: ``/`` is a landing page, the telemetry path renders the
coordinator for the target named in the ``target`` query parameter. With
no target the first configured one is served; an unknown name is a 404
rather than someone else's metrics.
"""

from __future__ import annotations

import logging
from socketserver import ThreadingMixIn
from typing import Callable, Iterable, List, Tuple
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from kibana_exporter.errors import ConfigError
from kibana_exporter.exporter import ExportCoordinator

log = logging.getLogger(__name__)

DEFAULT_LISTEN_ADDRESS = ":9684"
DEFAULT_METRICS_PATH = "/metrics"

LANDING_PAGE = """<html>
<head><title>Kibana Exporter</title></head>
<body>
<h1>Kibana Exporter</h1>
<p><a href='{path}'>Metrics</a></p>
</body>
</html>
"""


def _respond(start_response, status: str, content_type: str, body: bytes) -> List[bytes]:
    headers: List[Tuple[str, str]] = [
        ("Content-Type", content_type),
        ("Content-Length", str(len(body))),
    ]
    start_response(status, headers)
    return [body]


def render_metrics(coordinator: ExportCoordinator, target) -> bytes:
    """One full exposition for ``target``; bind and collect happen under one lock."""
    registry = CollectorRegistry()
    registry.register(coordinator)
    with coordinator.lock:
        coordinator.set_target(target)
        return generate_latest(registry)


def make_app(coordinator: ExportCoordinator, metrics_path: str = DEFAULT_METRICS_PATH) -> Callable:
    landing = LANDING_PAGE.format(path=metrics_path).encode("utf-8")

    def app(environ, start_response) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")

        if path == "/":
            return _respond(start_response, "200 OK", "text/html; charset=UTF-8", landing)

        if path != metrics_path:
            return _respond(start_response, "404 Not Found", "text/plain; charset=utf-8", b"not found\n")

        params = parse_qs(environ.get("QUERY_STRING", ""))
        name = (params.get("target") or [""])[0].strip()
        if name:
            target = coordinator.find_target(name)
            if target is None:
                log.warning("scrape requested for unknown target %r", name)
                body = f"unknown target: {name}\n".encode("utf-8")
                return _respond(start_response, "404 Not Found", "text/plain; charset=utf-8", body)
        else:
            target = coordinator.collectors[0]

        output = render_metrics(coordinator, target)
        return _respond(start_response, "200 OK", CONTENT_TYPE_LATEST, output)

    return app


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """``[host]:port`` -> (host, port). An empty host listens everywhere."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigError(f"invalid listen address {address!r}", field="web.listen-address")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def make_http_server(app: Callable, address: str = DEFAULT_LISTEN_ADDRESS) -> WSGIServer:
    host, port = parse_listen_address(address)
    return make_server(host, port, app, server_class=_ThreadingWSGIServer, handler_class=_QuietHandler)


def serve(app: Callable, address: str = DEFAULT_LISTEN_ADDRESS):
    """Run the endpoint until interrupted."""
    httpd = make_http_server(app, address)
    log.info("Listening on address %s", address)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")
    finally:
        httpd.server_close()
