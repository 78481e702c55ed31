"""CLI entry point for merlinconf.

This module defines the main CLI group using the LazyGroup pattern so
that ``merlinconf --help`` does not import the core package.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from merlinconf_cli import __version__
from merlinconf_cli.output import set_no_color

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands lazily.

    Commands are only imported when actually invoked, not at import time.

    Attributes:
        lazy_subcommands: Mapping of command names to module paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"dump": "merlinconf_cli.commands.dump.dump"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_path = self.lazy_subcommands[cmd_name]
        module_name, attr_name = module_path.rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "dump": "merlinconf_cli.commands.dump.dump",
    "config": "merlinconf_cli.commands.config.config",
    "dot-merlin": "merlinconf_cli.commands.dot_merlin.dot_merlin",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="merlinconf")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Minimum log level [default: MERLINCONF_LOG_LEVEL or WARNING]",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Emit logs as JSON [default: MERLINCONF_LOG_JSON].",
)
def cli(log_level: str | None, log_json: bool) -> None:
    """merlinconf - Editor configuration for build units.

    Inspect the per-unit configuration artifacts served to the editor, or
    merge them into one legacy `.merlin` document.

    **Commands:**

    - `merlinconf dump FILE` - Print every module's configuration
    - `merlinconf config FILE SOURCE` - Print the configuration of one source file
    - `merlinconf dot-merlin FILE...` - Merge artifacts into a `.merlin` document
    """
    from merlinconf_core.errors import ConfigurationError
    from merlinconf_core.observability import configure_logging
    from merlinconf_core.settings import get_settings

    from merlinconf_cli.errors import handle_merlin_error

    try:
        settings = get_settings()
    except ConfigurationError as e:
        handle_merlin_error(e)

    configure_logging(
        log_level=(log_level or settings.log_level).upper(),
        json_format=log_json or settings.log_json,
    )


if __name__ == "__main__":
    cli()
