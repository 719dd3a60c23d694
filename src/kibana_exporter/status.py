"""
Decoded Kibana /api/status document.

Only the fields the exporter publishes are kept. Anything missing from the
response decodes to zero, which matches what older Kibana versions send
when a metric is not available yet. A field with the wrong JSON type is a
decode failure for the whole document.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from kibana_exporter.errors import DecodeError

HEALTHY_STATE = "green"


@dataclass
class VersionInfo:
    number: str = ""
    build_number: int = 0


@dataclass
class StatusPayload:
    """A single reading of one Kibana instance."""

    version: VersionInfo = field(default_factory=VersionInfo)
    overall_state: str = ""

    # Server
    concurrent_connections: int = 0
    uptime_in_millis: float = 0.0

    # Process memory
    heap_total_in_bytes: int = 0
    heap_used_in_bytes: int = 0

    # OS load averages
    load_1m: float = 0.0
    load_5m: float = 0.0
    load_15m: float = 0.0

    # Response times (milliseconds)
    response_avg_in_millis: float = 0.0
    response_max_in_millis: float = 0.0

    # Requests
    requests_disconnects: int = 0
    requests_total: int = 0

    @property
    def healthy(self) -> bool:
        # anything other than "green" (yellow, red, unknown, empty) is degraded
        return self.overall_state.lower() == HEALTHY_STATE

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "StatusPayload":
        if not isinstance(doc, Mapping):
            raise DecodeError(f"expected a JSON object, got {type(doc).__name__}")

        try:
            version = _obj(doc, "version")
            metrics = _obj(doc, "metrics")
            process = _obj(metrics, "process")
            heap = _obj(_obj(process, "memory"), "heap")
            load = _obj(_obj(metrics, "os"), "load")
            response_times = _obj(metrics, "response_times")
            requests = _obj(metrics, "requests")

            return cls(
                version=VersionInfo(
                    number=_str(version, "number"),
                    build_number=_int(version, "build_number"),
                ),
                overall_state=_str(_obj(_obj(doc, "status"), "overall"), "state"),
                concurrent_connections=_int(metrics, "concurrent_connections"),
                uptime_in_millis=_float(process, "uptime_in_millis"),
                heap_total_in_bytes=_int(heap, "total_in_bytes"),
                heap_used_in_bytes=_int(heap, "used_in_bytes"),
                load_1m=_float(load, "1m"),
                load_5m=_float(load, "5m"),
                load_15m=_float(load, "15m"),
                response_avg_in_millis=_float(response_times, "avg_in_millis"),
                response_max_in_millis=_float(response_times, "max_in_millis"),
                requests_disconnects=_int(requests, "disconnects"),
                requests_total=_int(requests, "total"),
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise DecodeError(f"unexpected field type in status document: {e}") from e

    @classmethod
    def from_json(cls, content: bytes) -> "StatusPayload":
        """Decode a raw response body. The body is kept on the error for diagnosis."""
        try:
            doc = json.loads(content)
        except ValueError as e:
            raise DecodeError(f"error while unmarshalling Kibana status: {e}", content=content) from e

        try:
            return cls.from_dict(doc)
        except DecodeError as e:
            raise DecodeError(str(e), content=content) from e

    def as_dict(self) -> Dict[str, Any]:
        """Nested dict in the same shape Kibana sends."""
        return {
            "version": {
                "number": self.version.number,
                "build_number": self.version.build_number,
            },
            "status": {"overall": {"state": self.overall_state}},
            "metrics": {
                "concurrent_connections": self.concurrent_connections,
                "process": {
                    "uptime_in_millis": self.uptime_in_millis,
                    "memory": {
                        "heap": {
                            "total_in_bytes": self.heap_total_in_bytes,
                            "used_in_bytes": self.heap_used_in_bytes,
                        },
                    },
                },
                "os": {
                    "load": {"1m": self.load_1m, "5m": self.load_5m, "15m": self.load_15m},
                },
                "response_times": {
                    "avg_in_millis": self.response_avg_in_millis,
                    "max_in_millis": self.response_max_in_millis,
                },
                "requests": {
                    "disconnects": self.requests_disconnects,
                    "total": self.requests_total,
                },
            },
        }


def _obj(parent: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{key!r} should be an object, got {type(value).__name__}")
    return value


def _str(parent: Mapping[str, Any], key: str) -> str:
    value = parent.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key!r} should be a string, got {type(value).__name__}")
    return value


def _int(parent: Mapping[str, Any], key: str) -> int:
    value = parent.get(key)
    if value is None:
        return 0
    # bool is an int subclass in Python but not a JSON number
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{key!r} should be an integer, got {value!r}")
    # gauges hold doubles, so anything float() rejects is unusable
    float(value)
    return value


def _float(parent: Mapping[str, Any], key: str) -> float:
    value = parent.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key!r} should be a number, got {value!r}")
    return float(value)
