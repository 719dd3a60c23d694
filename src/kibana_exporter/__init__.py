"""Prometheus exporter for Kibana's /api/status endpoint."""

__version__ = "0.3.0"
