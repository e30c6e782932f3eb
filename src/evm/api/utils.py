# evm/api/utils.py
"""Shared helpers for building API responses."""
import logging
from typing import Any, Dict

from evm.error import EVMError

logger = logging.getLogger(__name__)


def error_response(message: str, error: Exception = None) -> Dict[str, Any]:
    """Builds the standard error dictionary.

    The response carries the exit code of `error` so that the CLI can
    terminate with a code identifying the failure kind.
    """
    response = {"status": "error", "message": message, "exit_code": 1}
    if isinstance(error, EVMError):
        response["exit_code"] = error.exit_code
        response["error"] = type(error).__name__
    return response
