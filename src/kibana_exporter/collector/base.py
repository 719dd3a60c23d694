"""
Base status source interface.

A status source is anything that can produce a StatusPayload for one
target. The exporter only ever talks to this interface, so the live HTTP
collector and the mock one are interchangeable.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from kibana_exporter.errors import DecodeError, TransportError
from kibana_exporter.status import StatusPayload

log = logging.getLogger(__name__)

# Delay between readiness probes; not user controlled.
READY_POLL_SECONDS = 10.0


class StatusSource(ABC):
    """Interface for all Kibana status sources."""

    # Outcome of the most recent fetch attempt only.
    state: bool = False

    @property
    @abstractmethod
    def target_name(self) -> str:
        """Key this source is looked up by."""
        ...

    @property
    def wait(self) -> bool:
        """Whether startup should block until this target answers."""
        return False

    @abstractmethod
    def scrape(self) -> StatusPayload:
        """Fetch one status document. Raises TransportError or DecodeError."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def test_connection(self) -> bool:
        """Scrape once and report whether it worked. The payload is dropped."""
        log.debug("checking for kibana status: %s", self.name())
        try:
            self.scrape()
        except (TransportError, DecodeError) as e:
            log.info("test connection to kibana failed: %s", e)
            return False
        return True

    def wait_until_ready(
        self,
        delay_seconds: float = READY_POLL_SECONDS,
        max_attempts: Optional[int] = None,
    ) -> bool:
        """Block until the target answers.

        With ``max_attempts=None`` this never gives up, which is what the
        ``wait`` startup policy asks for. Returns False only when a bound
        was given and every attempt failed.
        """
        attempt = 0
        while max_attempts is None or attempt < max_attempts:
            attempt += 1
            if self.test_connection():
                log.info("kibana is up: %s", self.name())
                return True
            if max_attempts is not None and attempt >= max_attempts:
                break
            log.info("waiting for kibana to be responsive: %s (attempt %d)", self.name(), attempt)
            time.sleep(delay_seconds)

        log.warning("kibana still unreachable after %d attempts: %s", attempt, self.name())
        return False

    def close(self):
        pass
