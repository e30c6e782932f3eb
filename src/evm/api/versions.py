# evm/api/versions.py
"""Provides API functions for installing, activating and listing versions.

Each function returns a dictionary with a ``status`` of ``"success"`` or
``"error"`` and a human readable ``message``. Malformed version strings are
reported the same way, so callers never need to catch evm exceptions.
"""
import logging
from typing import Any, Dict, Optional

from evm.api.utils import error_response
from evm.error import EVMError
from evm.instances import get_manager_instance

logger = logging.getLogger(__name__)


def install_version(version: str) -> Dict[str, Any]:
    """Downloads and installs an Elasticsearch release.

    If no version is active yet, the new one is activated.

    Returns:
        On success: ``{"status": "success", "message": ..., "version": ...,
        "path": ..., "activated": bool}``.
    """
    logger.info(f"API: Installing Elasticsearch {version}...")
    try:
        result = get_manager_instance().install(version)
        message = f"Elasticsearch {version} installed."
        if result["activated"]:
            message += f" Now using {version}."
        return {"status": "success", "message": message, **result}
    except EVMError as e:
        logger.warning(f"API: Failed to install {version}: {e}")
        return error_response(f"Failed to install {version}: {e}", e)
    except Exception as e:
        logger.error(
            f"API: Unexpected error installing {version}: {e}", exc_info=True
        )
        return error_response(f"Unexpected error installing {version}: {e}")


def use_version(version: str) -> Dict[str, Any]:
    """Activates an installed version (a wildcard picks the newest match)."""
    logger.info(f"API: Switching active version to {version}...")
    try:
        resolved = get_manager_instance().use(version)
        return {
            "status": "success",
            "message": f"Now using Elasticsearch {resolved}.",
            "version": resolved,
        }
    except EVMError as e:
        logger.warning(f"API: Failed to use {version}: {e}")
        return error_response(str(e), e)
    except Exception as e:
        logger.error(f"API: Unexpected error using {version}: {e}", exc_info=True)
        return error_response(f"Unexpected error switching to {version}: {e}")


def remove_version(version: str) -> Dict[str, Any]:
    """Deletes an installed version that is not currently active."""
    logger.info(f"API: Removing Elasticsearch {version}...")
    try:
        get_manager_instance().remove(version)
        return {
            "status": "success",
            "message": f"Elasticsearch {version} removed.",
            "version": version,
        }
    except EVMError as e:
        logger.warning(f"API: Failed to remove {version}: {e}")
        return error_response(str(e), e)
    except Exception as e:
        logger.error(f"API: Unexpected error removing {version}: {e}", exc_info=True)
        return error_response(f"Unexpected error removing {version}: {e}")


def list_versions() -> Dict[str, Any]:
    """Lists installed versions, newest first.

    Returns:
        ``{"status": "success", "versions": [{"version", "path", "current"}, ...],
        "current": str | None}``.
    """
    try:
        manager = get_manager_instance()
        versions = [
            {"version": v.version, "path": v.path, "current": v.current}
            for v in manager.list_versions()
        ]
        current = next((v["version"] for v in versions if v["current"]), None)
        logger.debug(f"API: Found {len(versions)} installed versions.")
        return {"status": "success", "versions": versions, "current": current}
    except EVMError as e:
        logger.warning(f"API: Failed to list versions: {e}")
        return error_response(f"Failed to list versions: {e}", e)
    except Exception as e:
        logger.error(f"API: Unexpected error listing versions: {e}", exc_info=True)
        return error_response(f"Unexpected error listing versions: {e}")


def get_current_version() -> Dict[str, Any]:
    try:
        current = get_manager_instance().current_version()
        return {"status": "success", "version": current}
    except EVMError as e:
        logger.warning(f"API: Failed to read the active version: {e}")
        return error_response(f"Failed to read the active version: {e}", e)


def get_version_path(version: Optional[str] = None) -> Dict[str, Any]:
    """Returns the install directory of `version`, or of the active version.

    A version that is not installed is not an error: the response has
    ``"found": False`` and ``"path": None``.
    """
    try:
        path = get_manager_instance().which(version)
    except EVMError as e:
        logger.warning(f"API: Failed to resolve path for {version}: {e}")
        return error_response(str(e), e)

    if path is None:
        message = (
            f"Not found: Elasticsearch {version} is not installed."
            if version
            else "Not found: no active version."
        )
        return {"status": "success", "found": False, "path": None, "message": message}
    return {"status": "success", "found": True, "path": path, "message": path}
