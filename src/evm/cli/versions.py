# evm/cli/versions.py
"""
Click commands for installing, switching, removing and listing versions.
"""
import sys
import logging
from typing import Optional

import click
import questionary

from evm.api import versions as versions_api
from evm.cli.utils import (
    VersionValidator,
    handle_api_response as _handle_api_response,
    prompt_for_installed_version,
)

logger = logging.getLogger(__name__)


def _interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


@click.command("install")
@click.argument("version", required=False)
def install(version: Optional[str]):
    """Downloads and installs Elasticsearch VERSION (e.g. 6.2.0)."""
    if not version:
        if not _interactive():
            raise click.UsageError("Missing argument 'VERSION'.")
        version = questionary.text(
            "Enter the Elasticsearch version to install (X.Y.Z):",
            validate=VersionValidator(),
        ).ask()
        if not version:
            raise click.Abort()

    click.echo(f"Installing Elasticsearch {version}...")
    _handle_api_response(
        versions_api.install_version(version), f"Elasticsearch {version} installed."
    )


@click.command("use")
@click.argument("version", required=False)
def use(version: Optional[str]):
    """Makes VERSION the active version. X.Y.* picks the newest X.Y release.

    Without VERSION, an interactive picker of installed versions is shown.
    """
    if not version:
        if not _interactive():
            raise click.UsageError("Missing argument 'VERSION'.")
        listing = _handle_listing()
        installed = [v["version"] for v in listing["versions"]]
        if not installed:
            click.secho("No versions installed.", fg="yellow")
            return
        version = prompt_for_installed_version(installed, listing.get("current"))
        if not version:
            raise click.Abort()

    _handle_api_response(versions_api.use_version(version), f"Now using {version}.")


@click.command("remove")
@click.argument("version")
def remove(version: str):
    """Deletes installed VERSION. The active version cannot be removed."""
    _handle_api_response(
        versions_api.remove_version(version), f"Elasticsearch {version} removed."
    )


def _handle_listing():
    response = versions_api.list_versions()
    if response.get("status") == "error":
        _handle_api_response(response, "")
    return response


@click.command("list")
def list_versions():
    """Lists installed versions, newest first. The active one is marked."""
    response = _handle_listing()
    versions = response.get("versions", [])
    if not versions:
        click.secho("No versions installed.", fg="yellow")
        return

    for entry in versions:
        if entry["current"]:
            click.secho(f"* {entry['version']}", fg="green", bold=True)
        else:
            click.echo(f"  {entry['version']}")


@click.command("version")
def current_version():
    """Prints the active Elasticsearch version."""
    response = versions_api.get_current_version()
    if response.get("status") == "error":
        _handle_api_response(response, "")
    if response.get("version"):
        click.echo(response["version"])
    else:
        click.secho("No active version.", fg="yellow")


@click.command("which")
@click.argument("version", required=False)
def which(version: Optional[str]):
    """Prints the install directory of VERSION, or of the active version."""
    response = versions_api.get_version_path(version)
    if response.get("status") == "error":
        _handle_api_response(response, "")
    if response.get("found"):
        click.echo(response["path"])
    else:
        click.secho(response.get("message", "Not found."), fg="yellow")
