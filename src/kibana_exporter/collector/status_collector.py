"""
Collector for a live Kibana instance. Fetches /api/status and decodes it
into a StatusPayload.

One collector per configured target. The httpx client, TLS policy and
auth header are all fixed at construction; a scrape is exactly one GET
with no retry.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from kibana_exporter.collector.base import StatusSource
from kibana_exporter.config import TargetProfile
from kibana_exporter.errors import TransportError
from kibana_exporter.status import StatusPayload

log = logging.getLogger(__name__)

STATUS_PATH = "/api/status"
DEFAULT_TIMEOUT_SECONDS = 10.0


def basic_auth_header(username: str, password: str) -> str:
    """``Basic <base64(user:pass)>``, or "" unless both parts are set."""
    if not username or not password:
        return ""
    creds = f"{username}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(creds).decode("ascii")


class StatusCollector(StatusSource):

    def __init__(
        self,
        profile: TargetProfile,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.profile = profile
        self.state = False
        self._status_url = profile.base_url + STATUS_PATH
        self._timeout = timeout_seconds

        if profile.is_tls:
            log.debug("kibana URL is a TLS one: %s", profile.base_url)
            if profile.skip_tls:
                log.info("skipping TLS verification for Kibana URL: %s", profile.base_url)
            self.verify_tls = not profile.skip_tls
        else:
            log.debug("kibana URL is a plain text one: %s", profile.base_url)
            if profile.skip_tls:
                log.info("kibana.skip-tls is enabled for an http URL, ignoring: %s", profile.base_url)
            self.verify_tls = True

        self.auth_header = basic_auth_header(profile.username, profile.password)
        if self.auth_header:
            log.debug("using authenticated requests with Kibana: %s", profile.name)
        else:
            log.info("Kibana username or password is not provided, assuming unauthenticated communication: %s",
                     profile.name)

        self._client = httpx.Client(timeout=self._timeout, verify=self.verify_tls, transport=transport)

    @property
    def target_name(self) -> str:
        return self.profile.name

    @property
    def wait(self) -> bool:
        return self.profile.wait

    def scrape(self) -> StatusPayload:
        """GET /api/status and decode it.

        Raises TransportError when the request fails or the status is not
        200, and DecodeError when the body is not a valid status document.
        """
        headers = {"Accept": "application/json"}
        if self.auth_header:
            headers["Authorization"] = self.auth_header

        log.debug("requesting api/status from kibana: %s", self._status_url)
        try:
            response = self._client.get(self._status_url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.state = False
            raise TransportError(f"error while reading Kibana status: {e}") from e

        if response.status_code != httpx.codes.OK:
            self.state = False
            raise TransportError(
                f"invalid response from Kibana status: {response.status_code} {response.reason_phrase}"
            )

        self.state = True
        log.debug("processing api/status response (%d bytes)", len(response.content))
        return StatusPayload.from_json(response.content)

    def name(self) -> str:
        return f"Kibana {self.profile.name} ({self.profile.base_url})"

    def close(self):
        self._client.close()
