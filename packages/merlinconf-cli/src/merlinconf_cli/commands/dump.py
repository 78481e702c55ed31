"""merlinconf dump command - Print every module's configuration."""

from __future__ import annotations

from pathlib import Path

import click

from merlinconf_cli.errors import handle_merlin_error
from merlinconf_cli.output import warning


@click.command("dump")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
def dump(file: Path) -> None:
    """Print the configuration of every module in an artifact FILE.

    Each module's name is followed by the directives the editor receives
    for it.

    Examples:

        merlinconf dump _build/default/src/.merlin-conf/lib-foo
    """
    # Import here to avoid heavy imports at CLI startup
    from merlinconf_core.persist import LoadError, load_file
    from merlinconf_core.render import dump as render_dump

    result = load_file(file)
    if isinstance(result, LoadError):
        handle_merlin_error(result.to_exception())

    if not result.per_module_config:
        warning(f"{file} holds no modules")
        return
    click.echo(render_dump(result))
