"""merlinconf dot-merlin command - Merge artifacts into a legacy document."""

from __future__ import annotations

from pathlib import Path

import click

from merlinconf_cli.errors import handle_merlin_error


@click.command("dot-merlin")
@click.argument("files", nargs=-1, type=click.Path(dir_okay=False, path_type=Path))
def dot_merlin(files: tuple[Path, ...]) -> None:
    """Merge artifact FILES into one `.merlin` document on stdout.

    Directories are unioned and every flag is printed as a `# FLG` comment.
    The standard library of the first FILE wins. Any file that fails to
    load aborts the whole merge.

    Examples:

        merlinconf dot-merlin _build/default/src/.merlin-conf/*
    """
    # Import here to avoid heavy imports at CLI startup
    from merlinconf_core.errors import MerlinError
    from merlinconf_core.merge import generic_dot_merlin
    from merlinconf_core.quoting import select_quoting
    from merlinconf_core.settings import get_settings

    quoting = select_quoting(windows=get_settings().windows_quoting)
    try:
        document = generic_dot_merlin(list(files), quoting=quoting)
    except MerlinError as e:
        handle_merlin_error(e)
    click.echo(document, nl=False)
