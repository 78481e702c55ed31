"""CLI error handling for merlinconf-cli.

This module wraps merlinconf-core exceptions into CLI errors with
user-friendly messages and appropriate exit codes.
"""

from __future__ import annotations

from typing import NoReturn

import click

from merlinconf_cli.output import error

# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # User error (unknown source, empty merge, stale artifact)
EXIT_SYSTEM_ERROR = 2  # System error (unreadable file)


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        """Initialize CLIError.

        Args:
            message: User-facing error message.
            exit_code: Exit code for the CLI.
        """
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def handle_merlin_error(err: Exception) -> NoReturn:
    """Turn a merlinconf-core exception into a CLIError.

    Args:
        err: Exception raised by merlinconf-core.

    Raises:
        CLIError: Always raises, with the exception's user message.
    """
    from merlinconf_core.errors import ArtifactLoadError, MerlinError

    if isinstance(err, ArtifactLoadError) and err.unreadable:
        raise CLIError(err.user_message, exit_code=EXIT_SYSTEM_ERROR) from err
    if isinstance(err, MerlinError):
        raise CLIError(err.user_message) from err
    raise CLIError(f"Unexpected error: {err}", exit_code=EXIT_SYSTEM_ERROR) from err
