# evm/cli/utils.py
"""
Provides utility functions specifically for the command-line interface (CLI).
"""
import logging
from typing import Any, Dict

import click
import questionary
from questionary import ValidationError, Validator

from evm.core.version import Version
from evm.error import InvalidVersionError

logger = logging.getLogger(__name__)


def handle_api_response(response: Dict[str, Any], success_msg: str) -> Dict[str, Any]:
    """Prints the outcome of an API call and exits on error.

    On error the message is printed in red to stderr and the command exits
    with the ``exit_code`` carried by the response.

    Args:
        response: The dictionary returned by an API function.
        success_msg: Fallback message when a successful response has none.

    Returns:
        The response, for callers that need its data.
    """
    if response.get("status") == "error":
        message = response.get("message", "An unknown error occurred.")
        click.secho(f"Error: {message}", fg="red", err=True)
        raise click.exceptions.Exit(response.get("exit_code", 1))

    message = response.get("message") or success_msg
    click.secho(message, fg="green")
    return response


class VersionValidator(Validator):
    """Validates questionary input as an X.Y.Z or X.Y.* version string."""

    def validate(self, document):
        try:
            Version.parse(document.text)
        except InvalidVersionError as e:
            raise ValidationError(message=str(e), cursor_position=len(document.text))


def prompt_for_installed_version(versions, current=None):
    """Asks the user to pick one of `versions`.

    Returns:
        The chosen version string, or None if the prompt was cancelled.
    """
    choices = [
        questionary.Choice(
            title=f"{v} (current)" if v == current else v, value=v
        )
        for v in versions
    ]
    return questionary.select(
        "Select the Elasticsearch version to use:", choices=choices
    ).ask()
