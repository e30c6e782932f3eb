# evm/cli/server.py
"""
Click commands for starting, stopping and checking the server.
"""
import logging
from typing import Optional

import click

from evm.api import server as server_api
from evm.cli.utils import handle_api_response as _handle_api_response

logger = logging.getLogger(__name__)


@click.command("start")
@click.option(
    "-c",
    "--config-path",
    "config_path",
    type=click.Path(file_okay=False),
    default=None,
    help="Configuration directory to start Elasticsearch with.",
)
def start_server(config_path: Optional[str]):
    """Starts the active Elasticsearch version in the background."""
    click.echo("Attempting to start Elasticsearch...")
    _handle_api_response(
        server_api.start_server(config_path), "Elasticsearch started."
    )


@click.command("stop")
def stop_server():
    """Stops the running Elasticsearch process."""
    click.echo("Attempting to stop Elasticsearch...")
    _handle_api_response(server_api.stop_server(), "Elasticsearch stopped.")


@click.command("status")
def server_status():
    """Shows whether Elasticsearch is running."""
    response = server_api.get_server_status()
    color = "green" if response.get("running") else "yellow"
    click.secho(response.get("message", "Unknown status."), fg=color)
