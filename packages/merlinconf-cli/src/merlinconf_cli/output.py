"""Rich console output utilities for merlinconf-cli.

Configuration documents are plain text written to stdout with
``click.echo``; the console here carries messages about them. Errors and
warnings go to stderr so they never mix with a document piped to a file.
The NO_COLOR environment variable and the ``--no-color`` flag are both
respected.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.markup import escape

# Rich automatically respects NO_COLOR, but we also support --no-color flag
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False, *, stderr: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.
        stderr: If True, write to stderr instead of stdout.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(
        force_terminal=force_terminal,
        no_color=no_color or _force_no_color,
        stderr=stderr,
        soft_wrap=True,
    )


console = create_console(stderr=True)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X to stderr.

    The message is escaped, so paths with brackets print as is.

    Example:
        >>> error("No merlin configuration found.")
        ✗ No merlin configuration found.
    """
    console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle to stderr.

    Example:
        >>> warning("Artifact holds no modules")
        ⚠ Artifact holds no modules
    """
    console.print(f"[yellow]⚠[/yellow] {escape(message)}", **kwargs)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors.

    Args:
        no_color: If True, disable colored output.
    """
    global console
    console = create_console(no_color=no_color, stderr=True)
