"""Preprocessing directive resolution.

Turns a module's preprocessing specification into the directive handed to
the editor:

- no preprocessing, future syntax -> None
- ``(action (run prog args... %{input-file}))`` -> ``-pp "prog args..."``
- ``(pps rewriters...)`` -> ``-ppx "driver --as-ppx flags..."``

Any other action shape, and any failing build query, yields None.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog

from merlinconf_core.compiler.context import SafeBuildContext
from merlinconf_core.quoting import QuotingStrategy, serialize_path
from merlinconf_core.schemas import (
    INPUT_FILE,
    Action,
    ActionPreprocessing,
    ChdirAction,
    FutureSyntax,
    NoPreprocessing,
    PpFlag,
    PpKind,
    PpxPreprocessing,
    PreprocessSpec,
    RunAction,
)

logger = structlog.get_logger(__name__)

MAX_CHDIR_NESTING = 2


def encode_command(program: Path | str, args: Sequence[str], quoting: QuotingStrategy) -> str:
    """Encode a program and its arguments as one command line.

    Example:
        >>> encode_command("/usr/bin/cppo", ["-V", "OCAML:5.1"], PosixQuoting())
        '/usr/bin/cppo -V OCAML:5.1'
    """
    return " ".join(quoting.quote(token) for token in [serialize_path(program), *args])


def _strip_input_file(action: Action) -> RunAction | None:
    """The run action without its trailing ``%{input-file}`` argument."""
    if not isinstance(action, RunAction) or not action.args:
        return None
    *args, last = action.args
    if last != INPUT_FILE:
        return None
    return action.model_copy(update={"args": tuple(args)})


def _unwrap_run(action: Action) -> RunAction | None:
    """The run action inside at most two ``chdir`` wrappers."""
    for _ in range(MAX_CHDIR_NESTING + 1):
        if isinstance(action, RunAction):
            return action
        if not isinstance(action, ChdirAction):
            return None
        action = action.action
    return None


async def pp_flag_of_action(
    action: Action,
    context: SafeBuildContext,
    *,
    dir: Path,
    quoting: QuotingStrategy,
) -> PpFlag | None:
    """Text-substitution directive of a user preprocessing action."""
    stripped = _strip_input_file(action)
    if stripped is None:
        return None

    expanded = await context.expand_action(stripped, dir=dir)
    if expanded is None:
        return None

    run = _unwrap_run(expanded)
    if run is None:
        logger.debug("pp_action_unsupported", kind=expanded.kind)
        return None
    return PpFlag(kind=PpKind.PP, args=encode_command(run.program, run.args, quoting))


async def pp_flags(
    spec: PreprocessSpec,
    context: SafeBuildContext,
    *,
    libname: str | None,
    dir: Path,
    quoting: QuotingStrategy,
) -> PpFlag | None:
    """Resolve one preprocessing specification to a directive.

    Args:
        spec: Preprocessing specification of a module.
        context: Failure-absorbing build queries.
        libname: Local library name of the unit, if a library.
        dir: Directory the unit is defined in.
        quoting: Quoting strategy for the encoded command line.

    Returns:
        The directive, or None when the module is not preprocessed or the
        directive cannot be determined.
    """
    if isinstance(spec, (NoPreprocessing, FutureSyntax)):
        return None

    if isinstance(spec, ActionPreprocessing):
        return await pp_flag_of_action(spec.action, context, dir=dir, quoting=quoting)

    if isinstance(spec, PpxPreprocessing):
        driver = await context.ppx_driver(spec, libname=libname, dir=dir)
        if driver is None:
            return None
        exe, flags = driver
        return PpFlag(
            kind=PpKind.PPX,
            args=encode_command(exe, ["--as-ppx", *flags], quoting),
        )

    return None
