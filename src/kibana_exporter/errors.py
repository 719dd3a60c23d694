"""Exception types shared across the exporter."""

from __future__ import annotations

from typing import Optional


class ExporterError(Exception):
    """Base class for everything the exporter raises on purpose."""


class ConfigError(ExporterError):
    """A target or exporter setting is missing or malformed. Fatal at startup."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        self.reason = message
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class TransportError(ExporterError):
    """Kibana could not be reached, or answered with a non-200 status."""


class DecodeError(ExporterError):
    """Kibana answered 200 but the body is not a usable status document."""

    def __init__(self, message: str, content: bytes = b""):
        self.content = content
        super().__init__(message)
