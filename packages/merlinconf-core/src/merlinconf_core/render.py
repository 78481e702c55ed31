"""Renderers of a MerlinArtifact.

Two outputs are produced:

- ``to_sexp``: the structured directive list served to the editor for one
  module, as an S-expression
- ``to_dot_merlin``: the legacy line-oriented ``.merlin`` document, used
  when several artifacts are merged

Directive order of the structured output is fixed:

    STDLIB, EXCLUDE_QUERY_DIR, B..., S..., FLG (opens), FLG (pp),
    FLG (melange), FLG (flags), SUFFIX...

The editor reads later flags as overriding earlier ones, so the FLG blocks
must never be reordered.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path, PurePath

from merlinconf_core.compiler.models import MerlinArtifact
from merlinconf_core.lookup import ProvenanceIndex, find_module_config
from merlinconf_core.quoting import QuotingStrategy, select_quoting, serialize_path
from merlinconf_core.schemas import (
    MerlinConfig,
    ModuleConfig,
    PerModule,
    PpFlag,
    SuffixOverride,
)
from merlinconf_core.settings import DEFAULT_MAX_PROVENANCE_DEPTH
from merlinconf_core.sexp import Sexp, pretty


def _directive(tag: str, value: Sexp) -> list[Sexp]:
    return [tag, value]


def _flags_block(tokens: Sequence[str]) -> list[Sexp]:
    return _directive("FLG", list(tokens))


def _suffixes(extensions: Iterable[SuffixOverride]) -> list[tuple[str, str]]:
    return [pair for pair in (ext.resolve() for ext in extensions) if pair is not None]


def to_sexp(
    config: MerlinConfig,
    *,
    opens: Sequence[str] = (),
    pp: PpFlag | None = None,
) -> list[Sexp]:
    """Structured directives of one module.

    Args:
        config: Configuration shared by the module's build unit.
        opens: Modules implicitly opened for the module, in order.
        pp: The module's preprocessing directive.

    Returns:
        List of directives, each a list headed by its tag.

    Example:
        >>> to_sexp(MerlinConfig(flags=("-w", "+a")))
        [['EXCLUDE_QUERY_DIR'], ['FLG', ['-w', '+a']]]
    """
    directives: list[Sexp] = []
    if config.stdlib_dir is not None:
        directives.append(_directive("STDLIB", serialize_path(config.stdlib_dir)))
    directives.append(["EXCLUDE_QUERY_DIR"])
    directives.extend(_directive("B", serialize_path(d)) for d in sorted(config.obj_dirs))
    directives.extend(_directive("S", serialize_path(d)) for d in sorted(config.src_dirs))

    if opens:
        directives.append(_flags_block([token for name in opens for token in ("-open", name)]))
    if pp is not None:
        directives.append(_flags_block([pp.kind.flag, pp.args]))
    if config.melc_flags:
        directives.append(_flags_block(config.melc_flags))
    if config.flags:
        directives.append(_flags_block(config.flags))

    directives.extend(
        _directive("SUFFIX", f"{impl} {intf}") for impl, intf in _suffixes(config.extensions)
    )
    return directives


def module_sexp(artifact: MerlinArtifact, module_config: ModuleConfig) -> list[Sexp]:
    """Structured directives of the module behind ``module_config``."""
    return to_sexp(
        artifact.config,
        opens=module_config.opens,
        pp=artifact.pp_for(module_config),
    )


def get(
    artifact: MerlinArtifact,
    file: PurePath | str,
    *,
    provenance: ProvenanceIndex | None = None,
    max_depth: int = DEFAULT_MAX_PROVENANCE_DEPTH,
) -> list[Sexp] | None:
    """Structured directives for the module owning ``file``, if any.

    Example:
        >>> get(artifact, "src/Foo.ml")  # same as "src/foo.mli"
        [['EXCLUDE_QUERY_DIR'], ...]
    """
    module_config = find_module_config(
        artifact,
        file,
        provenance=provenance,
        max_depth=max_depth,
    )
    if module_config is None:
        return None
    return module_sexp(artifact, module_config)


def dump(artifact: MerlinArtifact) -> str:
    """Every module's name followed by its structured directives."""
    sections = []
    for _, module_config in sorted(artifact.per_module_config.items()):
        sections.append(f"{module_config.module.name}\n{pretty(module_sexp(artifact, module_config))}")
    return "\n".join(sections)


def to_dot_merlin(
    stdlib_dir: Path | None,
    pp_configs: Iterable[PerModule[PpFlag | None]],
    flags: Iterable[Sequence[str]],
    obj_dirs: Iterable[Path],
    src_dirs: Iterable[Path],
    extensions: Iterable[SuffixOverride],
    *,
    quoting: QuotingStrategy | None = None,
) -> str:
    """Render a legacy ``.merlin`` document.

    Every flag is printed as a ``# FLG`` comment: the legacy consumer cannot
    tell several active FLG lines apart.

    Args:
        stdlib_dir: STDLIB directory, if any.
        pp_configs: Per-module preprocessing tables, one per artifact.
        flags: Flag lists, each printed on its own line.
        obj_dirs: B directories.
        src_dirs: S directories.
        extensions: Suffix overrides.
        quoting: Quoting strategy for flag tokens. Defaults to the
            strategy of the running platform.

    Returns:
        The document, each line terminated by a newline.
    """
    quoting = quoting or select_quoting()
    lines = ["EXCLUDE_QUERY_DIR"]
    if stdlib_dir is not None:
        lines.append(f"STDLIB {serialize_path(stdlib_dir)}")
    lines.extend(f"B {serialize_path(d)}" for d in sorted(obj_dirs))
    lines.extend(f"S {serialize_path(d)}" for d in sorted(src_dirs))
    lines.extend(f"SUFFIX {impl} {intf}" for impl, intf in _suffixes(extensions))

    for pp_config in pp_configs:
        for pp in pp_config.distinct():
            if pp is not None:
                lines.append(f"# FLG {pp.kind.flag} {quoting.quote_for_dot_merlin(pp.args)}")
    for tokens in flags:
        if tokens:
            lines.append("# FLG " + " ".join(quoting.quote_for_dot_merlin(t) for t in tokens))

    return "".join(f"{line}\n" for line in lines)
