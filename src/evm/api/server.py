# evm/api/server.py
"""Provides API functions for starting, stopping and inspecting the server.

The server always runs from the active version. Each function returns a
dictionary with the operation status and a message suitable for the CLI.
"""
import logging
from typing import Any, Dict, Optional

from evm.api.utils import error_response
from evm.error import EVMError
from evm.instances import get_manager_instance

logger = logging.getLogger(__name__)


def start_server(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Starts the active version in the background.

    Args:
        config_path: Optional configuration directory passed to the server.

    Returns:
        On success: ``{"status": "success", "message": ..., "pid": int,
        "version": str}``.
    """
    logger.info("API: Attempting to start Elasticsearch...")
    try:
        manager = get_manager_instance()
        pid = manager.server.start(config_path)
        version = manager.current_version()
        return {
            "status": "success",
            "message": f"Elasticsearch {version} started (PID {pid}).",
            "pid": pid,
            "version": version,
        }
    except EVMError as e:
        logger.warning(f"API: Failed to start Elasticsearch: {e}")
        return error_response(f"Failed to start Elasticsearch: {e}", e)
    except Exception as e:
        logger.error(f"API: Unexpected error starting Elasticsearch: {e}", exc_info=True)
        return error_response(f"Unexpected error starting Elasticsearch: {e}")


def stop_server() -> Dict[str, Any]:
    logger.info("API: Attempting to stop Elasticsearch...")
    try:
        pid = get_manager_instance().server.stop()
        return {
            "status": "success",
            "message": f"Elasticsearch (PID {pid}) stopped.",
            "pid": pid,
        }
    except EVMError as e:
        logger.warning(f"API: Failed to stop Elasticsearch: {e}")
        return error_response(str(e), e)
    except Exception as e:
        logger.error(f"API: Unexpected error stopping Elasticsearch: {e}", exc_info=True)
        return error_response(f"Unexpected error stopping Elasticsearch: {e}")


def get_server_status() -> Dict[str, Any]:
    """Reports whether the server is running.

    This never returns an error response: a failure to read state is
    reported as "not running".
    """
    try:
        status = get_manager_instance().server.status()
    except EVMError as e:
        logger.warning(f"API: Could not determine server status: {e}")
        status = {"running": False, "pid": None, "version": None}

    if status["running"]:
        message = f"Elasticsearch {status['version']} is running (PID {status['pid']})."
    else:
        message = "Elasticsearch is not running."
    return {"status": "success", "message": message, **status}
