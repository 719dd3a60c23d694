"""Tests for decoding Kibana's /api/status document."""

import json

import pytest

from kibana_exporter.errors import DecodeError
from kibana_exporter.status import StatusPayload


def test_decode_full_document(green_status):
    payload = StatusPayload.from_json(json.dumps(green_status).encode())

    assert payload.version.number == "7.17.1"
    assert payload.version.build_number == 46635
    assert payload.overall_state == "green"
    assert payload.concurrent_connections == 3
    assert payload.uptime_in_millis == 300512.5
    assert payload.heap_total_in_bytes == 536870912
    assert payload.heap_used_in_bytes == 201326592
    assert payload.load_1m == 0.52
    assert payload.load_5m == 0.41
    assert payload.load_15m == 0.37
    assert payload.response_avg_in_millis == 42.5
    assert payload.response_max_in_millis == 311.0
    assert payload.requests_disconnects == 2
    assert payload.requests_total == 1234


def test_missing_fields_decode_to_zero():
    payload = StatusPayload.from_dict({"status": {"overall": {"state": "green"}}})

    assert payload.healthy
    assert payload.version.number == ""
    assert payload.concurrent_connections == 0
    assert payload.load_15m == 0.0


@pytest.mark.parametrize("state, healthy", [
    ("green", True),
    ("GREEN", True),
    ("Green", True),
    ("yellow", False),
    ("red", False),
    ("", False),
    ("available", False),
    (" green", False),
])
def test_only_green_is_healthy(state, healthy):
    payload = StatusPayload.from_dict({"status": {"overall": {"state": state}}})
    assert payload.healthy is healthy


def test_invalid_json_keeps_raw_body():
    body = b"<html><body>502 Bad Gateway</body></html>"
    with pytest.raises(DecodeError) as exc:
        StatusPayload.from_json(body)
    assert exc.value.content == body


def test_wrong_field_type_is_decode_error(green_status):
    green_status["version"]["build_number"] = "46635"
    body = json.dumps(green_status).encode()

    with pytest.raises(DecodeError) as exc:
        StatusPayload.from_json(body)
    assert exc.value.content == body


def test_boolean_is_not_a_number(green_status):
    green_status["metrics"]["concurrent_connections"] = True
    with pytest.raises(DecodeError):
        StatusPayload.from_dict(green_status)


def test_oversized_number_is_decode_error(green_status):
    green_status["metrics"]["process"]["uptime_in_millis"] = 10 ** 400
    green_status["metrics"]["requests"]["total"] = 10 ** 400
    body = json.dumps(green_status).encode()

    with pytest.raises(DecodeError) as exc:
        StatusPayload.from_json(body)
    assert exc.value.content == body


def test_non_object_document_rejected():
    with pytest.raises(DecodeError):
        StatusPayload.from_json(b"[1, 2, 3]")


def test_as_dict_matches_kibana_shape(green_status):
    payload = StatusPayload.from_dict(green_status)
    again = StatusPayload.from_dict(payload.as_dict())
    assert again == payload
