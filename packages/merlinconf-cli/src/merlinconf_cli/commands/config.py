"""merlinconf config command - Print the configuration of one source file."""

from __future__ import annotations

from pathlib import Path

import click

from merlinconf_cli.errors import CLIError, handle_merlin_error


def _parse_origin(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    origins: dict[str, str] = {}
    for value in values:
        derived, sep, origin = value.partition("=")
        if not sep or not derived or not origin:
            raise click.BadParameter(f"expected DERIVED=ORIGIN, got {value!r}", ctx=ctx, param=param)
        origins[derived] = origin
    return origins


@click.command("config")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("source", type=str)
@click.option(
    "--origin",
    "origins",
    multiple=True,
    callback=_parse_origin,
    metavar="DERIVED=ORIGIN",
    help="Record that generated file DERIVED was produced from ORIGIN. Repeatable.",
)
@click.option(
    "--canonical",
    is_flag=True,
    default=False,
    help="Print canonical S-expression bytes instead of the readable form.",
)
def config(file: Path, source: str, origins: dict[str, str], canonical: bool) -> None:
    """Print the editor configuration of SOURCE from the artifact FILE.

    SOURCE is matched without its extensions and case-insensitively on the
    file name: `src/Foo.ml`, `src/foo.mli` and `src/foo.pp.ml` all find the
    module of `src/foo`. Generated files are followed back to their origin
    through `--origin`.

    Examples:

        merlinconf config _build/default/src/.merlin-conf/lib-foo src/foo.ml

        merlinconf config FILE src/foo.pp.ml --origin src/foo.pp.ml=src/foo.ml
    """
    # Import here to avoid heavy imports at CLI startup
    from merlinconf_core.lookup import ProvenanceIndex
    from merlinconf_core.persist import LoadError, load_file
    from merlinconf_core.render import get
    from merlinconf_core.settings import get_settings
    from merlinconf_core.sexp import pretty, to_canonical

    result = load_file(file)
    if isinstance(result, LoadError):
        handle_merlin_error(result.to_exception())

    sexp = get(
        result,
        source,
        provenance=ProvenanceIndex(origins) if origins else None,
        max_depth=get_settings().max_provenance_depth,
    )
    if sexp is None:
        raise CLIError(f"No configuration for {source} in {file}")

    if canonical:
        click.echo(to_canonical(sexp), nl=False)
    else:
        click.echo(pretty(sexp))
