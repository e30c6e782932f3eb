# evm/cli/plugins.py
"""
Defines the `evm plugin` command, a proxy to Elasticsearch's plugin tool.
"""
import logging
from typing import Optional, Tuple

import click

from evm.api import plugins as plugins_api
from evm.cli.utils import handle_api_response as _handle_api_response

logger = logging.getLogger(__name__)


@click.command("plugin")
@click.argument("action")
@click.argument("plugin_name", required=False)
@click.argument("extra", nargs=-1)
def plugin(action: str, plugin_name: Optional[str], extra: Tuple[str, ...]):
    """Manages plugins of the active version.

    \b
    ACTION is one of:
      list             List installed plugins.
      install NAME     Install a plugin.
      remove NAME      Remove a plugin.
    """
    response = plugins_api.run_plugin_command(action, plugin_name, extra)
    _handle_api_response(response, f"Plugin {action} completed.")
