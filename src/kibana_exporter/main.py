"""
kibana-exporter entry point.

Usage:
    kibana-exporter --kibana.uri http://localhost:5601     Single target
    kibana-exporter -c kibanas.yml                         Targets from a file
    kibana-exporter -c kibanas.yml --dry-run               Check config, dump one scrape
    kibana-exporter --mock                                 Simulated Kibana
"""

from __future__ import annotations

import logging
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from kibana_exporter import __version__
from kibana_exporter.collector.base import StatusSource
from kibana_exporter.collector.mock_collector import MockCollector
from kibana_exporter.collector.status_collector import DEFAULT_TIMEOUT_SECONDS, StatusCollector
from kibana_exporter.config import TargetProfile, load_config
from kibana_exporter.errors import ConfigError
from kibana_exporter.exporter import ExportCoordinator
from kibana_exporter.registry import NAMESPACE
from kibana_exporter.server import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    make_app,
    parse_listen_address,
    render_metrics,
    serve,
)

EXPORTER_NAME = "kibana_exporter"

log = logging.getLogger("kibana_exporter")


def _load_profiles(
    config_file: Optional[str],
    kibana_uri: str,
    username: str,
    password: str,
    skip_tls: bool,
    wait: bool,
) -> List[TargetProfile]:
    profiles: List[TargetProfile] = []
    if config_file:
        profiles = load_config(config_file)

    # a URI on the command line replaces whatever the file defined
    kibana_uri = kibana_uri.strip()
    if kibana_uri:
        profiles = [
            TargetProfile.from_url(
                kibana_uri,
                name="default",
                username=username.strip(),
                password=password.strip(),
                skip_tls=skip_tls,
                wait=wait,
            )
        ]
    return profiles


def _print_targets(collectors: List[StatusSource]):
    console = Console()
    table = Table(title="Configured targets", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Source")
    table.add_column("Auth", justify="center")
    table.add_column("Verify TLS", justify="center")
    table.add_column("Wait", justify="center")

    for c in collectors:
        if isinstance(c, StatusCollector):
            table.add_row(
                c.target_name,
                c.profile.base_url,
                "yes" if c.auth_header else "no",
                "yes" if c.profile.is_tls and c.verify_tls else "-",
                "yes" if c.wait else "no",
            )
        else:
            table.add_row(c.target_name, c.name(), "-", "-", "no")

    console.print(table)


@click.command()
@click.version_option(version=__version__, prog_name="kibana-exporter")
@click.option("--web.listen-address", "listen_address", default=DEFAULT_LISTEN_ADDRESS,
              help="The address to listen on for HTTP requests.")
@click.option("--web.telemetry-path", "metrics_path", default=DEFAULT_METRICS_PATH,
              help="Path under which to expose metrics.")
@click.option("-c", "--config-file", "config_file", default=None, help="Exporter configuration file.")
@click.option("-n", "--dry-run", "dry_run", is_flag=True, default=False,
              help="Only check exporter configuration file, dump one scrape and exit.")
@click.option("--kibana.uri", "kibana_uri", default="", help="The Kibana API to fetch metrics from.")
@click.option("-u", "--kibana.username", "kibana_username", default="",
              help="The username to use for Kibana API.")
@click.option("-p", "--kibana.password", "kibana_password", default="",
              help="The password to use for Kibana API.")
@click.option("-d", "--kibana.skip-tls", "kibana_skip_tls", is_flag=True, default=False,
              help="Skip TLS verification for TLS secured Kibana URLs.")
@click.option("--kibana.timeout", "kibana_timeout", default=DEFAULT_TIMEOUT_SECONDS,
              help="Timeout in seconds for one Kibana status request.")
@click.option("-w", "--wait", "wait", is_flag=True, default=False,
              help="Wait for Kibana to be responsive before starting.")
@click.option("-s", "--debug", "debug", is_flag=True, default=False,
              help="Output verbose details during metrics collection, use for development only.")
@click.option("--mock", is_flag=True, default=False, help="Serve simulated Kibana status instead of a real one.")
@click.option("--log.level", "log_level", type=click.Choice(["debug", "info", "warning", "error"]),
              default="info", help="Only log messages with the given severity or above.")
def cli(listen_address: str, metrics_path: str, config_file: Optional[str], dry_run: bool,
        kibana_uri: str, kibana_username: str, kibana_password: str, kibana_skip_tls: bool,
        kibana_timeout: float, wait: bool, debug: bool, mock: bool, log_level: str):
    """Kibana exporter - republishes /api/status as Prometheus metrics."""
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, log_level.upper()),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("Starting %s version=%s", EXPORTER_NAME, __version__)

    try:
        parse_listen_address(listen_address)
        profiles = _load_profiles(config_file, kibana_uri, kibana_username, kibana_password,
                                  kibana_skip_tls, wait)
    except ConfigError as e:
        log.error("Error loading config: %s", e)
        raise SystemExit(1)

    collectors: List[StatusSource] = []
    if mock:
        collectors.append(MockCollector())
    else:
        for profile in profiles:
            try:
                collectors.append(StatusCollector(profile, timeout_seconds=kibana_timeout))
            except (OSError, ValueError) as e:
                log.error("error while initializing collector %s: %s", profile.name, e)
                raise SystemExit(1)

    if not collectors:
        log.error("No config found.")
        raise SystemExit(1)

    try:
        exporter = ExportCoordinator(collectors, namespace=NAMESPACE, debug=debug)
    except ConfigError as e:
        log.error("error while initializing exporter: %s", e)
        raise SystemExit(1)

    log.info("%s initialized with %d target(s)", EXPORTER_NAME, len(collectors))

    if dry_run:
        log.info("configuration OK.")
        log.info("%s runs once in dry-mode (output to stdout).", EXPORTER_NAME)
        try:
            _print_targets(collectors)
            output = render_metrics(exporter, collectors[0])
            click.echo(output.decode("utf-8"), nl=False)
        finally:
            exporter.close()
        raise SystemExit(1)

    # Startup phase: block on targets that asked for it, just report the rest
    for collector in collectors:
        if collector.wait:
            collector.wait_until_ready()
        elif not collector.test_connection():
            log.error("kibana %s is not responsive, not waiting for it", collector.target_name)

    try:
        serve(make_app(exporter, metrics_path), listen_address)
    finally:
        exporter.close()


if __name__ == "__main__":
    cli()
