# evm/api/plugins.py
"""
Provides API functions that proxy to the active version's plugin tool.
"""
import logging
from typing import Any, Dict, Optional, Sequence

from evm.api.utils import error_response
from evm.error import EVMError
from evm.instances import get_manager_instance

logger = logging.getLogger(__name__)


def run_plugin_command(
    action: str, plugin_name: Optional[str] = None, extra: Sequence[str] = ()
) -> Dict[str, Any]:
    """
    Runs `list`, `install <name>` or `remove <name>` with the plugin tool.

    The tool's own output goes straight to the terminal.

    Returns:
        A dictionary with operation status and a message.
    """
    logger.info(f"API: Running plugin action '{action}' (plugin: {plugin_name}).")
    try:
        get_manager_instance().server.plugin(action, plugin_name, extra)
        if plugin_name:
            message = f"Plugin {action} '{plugin_name}' completed."
        else:
            message = f"Plugin {action} completed."
        return {"status": "success", "message": message}
    except EVMError as e:
        logger.warning(f"API: Plugin action '{action}' failed: {e}")
        return error_response(str(e), e)
    except Exception as e:
        logger.error(f"API: Unexpected error running plugin action '{action}': {e}", exc_info=True)
        return error_response(f"Unexpected error running plugin command: {e}")
