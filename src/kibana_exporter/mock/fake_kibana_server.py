"""
Fake Kibana /api/status server for testing without a real Kibana.

    python -m kibana_exporter.mock.fake_kibana_server
    kibana-exporter --kibana.uri http://localhost:5601
"""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer, ThreadingHTTPServer
from typing import List, Optional, Type

from kibana_exporter.mock.generator import MockKibana


def make_handler(
    kibana: Optional[MockKibana] = None,
    body: Optional[bytes] = None,
    status_code: int = 200,
    required_auth: Optional[str] = None,
) -> Type[BaseHTTPRequestHandler]:
    """Build a handler class.

    By default every GET /api/status returns a fresh mock reading. ``body``
    and ``status_code`` pin the response instead, and ``required_auth``
    makes the handler answer 401 unless the Authorization header matches.
    Request headers are recorded on ``handler.seen_headers``.
    """
    source = kibana or MockKibana()
    lock = threading.Lock()

    class _StatusHandler(BaseHTTPRequestHandler):
        seen_headers: List[dict] = []

        def do_GET(self):
            self.seen_headers.append(dict(self.headers.items()))

            if self.path != "/api/status":
                self._reply(404, b"not found\n", "text/plain")
                return

            if required_auth is not None and self.headers.get("Authorization") != required_auth:
                self._reply(401, b'{"statusCode":401,"error":"Unauthorized"}', "application/json")
                return

            if body is not None:
                self._reply(status_code, body, "application/json")
                return

            with lock:
                payload = source.snapshot().as_dict()
            self._reply(status_code, json.dumps(payload).encode(), "application/json")

        def _reply(self, code: int, content: bytes, content_type: str):
            self.send_response(code)
            self.send_header("Content-Type", f"{content_type}; charset=utf-8")
            self.send_header("Content-Length", str(len(content)))
            self.end_headers()
            self.wfile.write(content)

        def log_message(self, format, *args):
            pass  # Suppress request logging noise

    return _StatusHandler


def start_in_thread(handler: Type[BaseHTTPRequestHandler], host: str = "127.0.0.1", port: int = 0) -> HTTPServer:
    """Serve on a daemon thread. Port 0 picks a free port; see ``server.server_port``."""
    server = ThreadingHTTPServer((host, port), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


def run_fake_server(host: str = "127.0.0.1", port: int = 5601, state: str = "green"):
    server = ThreadingHTTPServer((host, port), make_handler(MockKibana(state=state)))
    print(f"Fake Kibana status server running at http://{host}:{port}/api/status")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
