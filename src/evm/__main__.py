# evm/__main__.py
"""
Main entry point for the Elasticsearch Version Manager command-line interface.

This module sets up the application environment (settings, logging),
assembles all `click` commands and launches the CLI.
"""

import logging
import sys

import click

from . import __version__
from .config import app_name_title
from .error import EVMError
from .instances import get_settings_instance
from .logging import log_separator, setup_logging
from .cli import plugins, server, versions


# --- Main Click Group Definition ---
@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__, "-V", "--version", message=f"{app_name_title} %(version)s"
)
@click.pass_context
def cli(ctx: click.Context):
    """Installs, switches between and runs Elasticsearch versions.

    Versions are kept under $EVM_HOME (default ~/.evm). The active version
    is the one `start`, `plugin` and `which` operate on.
    """
    try:
        settings = get_settings_instance()
        logger = setup_logging(
            log_dir=settings.get("paths.logs"),
            log_keep=settings.get("retention.logs"),
            file_log_level=settings.get("logging.file_level"),
            cli_log_level=settings.get("logging.cli_level"),
            force_reconfigure=True,
        )
        log_separator(logger, app_name=app_name_title, app_version=__version__)
        logger.info(f"Starting {app_name_title} v{__version__} (home: {settings.home_dir})")
    except EVMError as setup_e:
        logging.getLogger("evm_critical_setup").critical(
            f"An unrecoverable error occurred during startup: {setup_e}",
            exc_info=True,
        )
        click.secho(f"CRITICAL STARTUP ERROR: {setup_e}", fg="red", bold=True, err=True)
        ctx.exit(setup_e.exit_code)

    ctx.obj = {"cli": cli}


@cli.command("help")
@click.pass_context
def help_command(ctx: click.Context):
    """Shows this message and exits."""
    click.echo(ctx.parent.get_help())


# --- Command Assembly ---
def _add_commands_to_cli():
    """Attaches all commands to the main CLI group."""
    cli.add_command(versions.install)
    cli.add_command(versions.use)
    cli.add_command(versions.remove)
    cli.add_command(versions.list_versions)
    cli.add_command(versions.current_version)
    cli.add_command(versions.which)
    cli.add_command(server.start_server)
    cli.add_command(server.stop_server)
    cli.add_command(server.server_status)
    cli.add_command(plugins.plugin)


_add_commands_to_cli()


def main():
    """Main execution function wrapped for final, fatal exception handling."""
    try:
        cli()
    except Exception as e:
        # Last-resort catch-all for errors not handled by Click.
        logger = logging.getLogger("evm_critical_fatal")
        logger.critical("A fatal, unhandled error occurred.", exc_info=True)
        click.secho(
            f"\nFATAL UNHANDLED ERROR: {type(e).__name__}: {e}", fg="red", bold=True
        )
        click.secho("Please check the logs for more details.", fg="yellow")
        sys.exit(1)


if __name__ == "__main__":
    main()
