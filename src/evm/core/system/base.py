# evm/core/system/base.py
"""Filesystem helpers shared by the registry and the downloader."""
import os
import stat
import shutil
import logging

logger = logging.getLogger(__name__)


def _handle_remove_readonly_onerror(func, path, exc_info):
    """An error handler for `shutil.rmtree` to handle read-only files.

    If an `OSError` occurs because a file is read-only, this handler attempts
    to change its permissions to be writable and then retries the operation.
    """
    if not os.access(path, os.W_OK):
        logger.debug(f"Path '{path}' is read-only. Attempting to make it writable.")
        try:
            os.chmod(path, stat.S_IWUSR | stat.S_IWRITE)
            func(path)
        except Exception as e:
            logger.warning(f"Failed to make '{path}' writable and retry operation: {e}")
            raise exc_info[1]
    else:
        raise exc_info[1]


def delete_path_robustly(path_to_delete: str, item_description: str) -> bool:
    """Deletes a file or directory robustly, handling read-only attributes.

    Args:
        path_to_delete: The full path to the file or directory to delete.
        item_description: A human-readable description for logging purposes.

    Returns:
        True if deletion was successful or the path didn't exist, False otherwise.
    """
    if not os.path.lexists(path_to_delete):
        logger.debug(
            f"{item_description.capitalize()} at '{path_to_delete}' not found, skipping."
        )
        return True

    logger.info(f"Preparing to delete {item_description}: {path_to_delete}")
    try:
        if os.path.isdir(path_to_delete) and not os.path.islink(path_to_delete):
            shutil.rmtree(path_to_delete, onerror=_handle_remove_readonly_onerror)
            logger.info(
                f"Successfully deleted {item_description} directory: {path_to_delete}"
            )
        else:
            if not os.path.islink(path_to_delete) and not os.access(
                path_to_delete, os.W_OK
            ):
                os.chmod(path_to_delete, stat.S_IWRITE | stat.S_IWUSR)
            os.remove(path_to_delete)
            logger.info(
                f"Successfully deleted {item_description} file: {path_to_delete}"
            )
        return True
    except Exception as e:
        logger.error(
            f"Failed to delete {item_description} at '{path_to_delete}': {e}",
            exc_info=True,
        )
        return False
