"""Merge several artifacts into one legacy ``.merlin`` document.

Only what is easy to merge is merged; the rest is dropped:

- object and source directories: union
- suffix overrides: concatenated, in input order
- preprocessing tables: kept side by side, one per artifact
- flag lists: kept side by side, one per artifact
- Melange flags: the first non-empty list wins, printed ahead of the
  other flag lists
- standard library: the first artifact's, unconditionally
- per-module index: dropped
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from merlinconf_core.compiler.models import MerlinArtifact
from merlinconf_core.errors import NoConfigurationError
from merlinconf_core.observability import span
from merlinconf_core.persist import LoadError, load_file
from merlinconf_core.quoting import QuotingStrategy
from merlinconf_core.render import to_dot_merlin
from merlinconf_core.schemas import PerModule, PpFlag, SuffixOverride

logger = structlog.get_logger(__name__)


class MergedConfiguration(BaseModel):
    """Combined configuration of several artifacts.

    Attributes:
        stdlib_dir: Standard library directory of the first artifact.
        obj_dirs: Union of all object directories.
        src_dirs: Union of all source directories.
        extensions: All suffix overrides, in input order.
        pp_configs: Preprocessing table of each artifact, in input order.
        flags: Flag list of each artifact, in input order.
        melc_flags: First non-empty Melange flag list.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    stdlib_dir: Path | None = Field(default=None, description="Standard library")
    obj_dirs: frozenset[Path] = Field(default=frozenset(), description="B directories")
    src_dirs: frozenset[Path] = Field(default=frozenset(), description="S directories")
    extensions: tuple[SuffixOverride, ...] = Field(default=(), description="Suffixes")
    pp_configs: tuple[PerModule[PpFlag | None], ...] = Field(
        default=(),
        description="Preprocessing tables",
    )
    flags: tuple[tuple[str, ...], ...] = Field(default=(), description="Flag lists")
    melc_flags: tuple[str, ...] = Field(default=(), description="Melange flags")

    def flag_lines(self) -> list[tuple[str, ...]]:
        """Flag lists in printing order, Melange flags first."""
        if not self.melc_flags:
            return list(self.flags)
        return [self.melc_flags, *self.flags]

    def to_dot_merlin(self, *, quoting: QuotingStrategy | None = None) -> str:
        """Render the merged configuration as a legacy document."""
        return to_dot_merlin(
            self.stdlib_dir,
            self.pp_configs,
            self.flag_lines(),
            self.obj_dirs,
            self.src_dirs,
            self.extensions,
            quoting=quoting,
        )


def merge_artifacts(artifacts: Sequence[MerlinArtifact]) -> MergedConfiguration:
    """Fold ``artifacts`` into one configuration, first artifact first.

    Raises:
        NoConfigurationError: If ``artifacts`` is empty.

    Example:
        >>> merged = merge_artifacts([first, second])
        >>> merged.obj_dirs == first.config.obj_dirs | second.config.obj_dirs
        True
    """
    if not artifacts:
        raise NoConfigurationError()

    head = artifacts[0].config
    obj_dirs = set(head.obj_dirs)
    src_dirs = set(head.src_dirs)
    extensions: list[SuffixOverride] = []
    pp_configs: list[PerModule[PpFlag | None]] = []
    flags: list[tuple[str, ...]] = []
    melc_flags: tuple[str, ...] = ()

    for artifact in artifacts:
        config = artifact.config
        obj_dirs |= config.obj_dirs
        src_dirs |= config.src_dirs
        extensions.extend(config.extensions)
        pp_configs.append(artifact.pp_config)
        flags.append(config.flags)
        if not melc_flags:
            melc_flags = config.melc_flags

    return MergedConfiguration(
        stdlib_dir=head.stdlib_dir,
        obj_dirs=frozenset(obj_dirs),
        src_dirs=frozenset(src_dirs),
        extensions=tuple(extensions),
        pp_configs=tuple(pp_configs),
        flags=tuple(flags),
        melc_flags=melc_flags,
    )


def load_all(paths: Iterable[Path]) -> list[MerlinArtifact] | LoadError:
    """Load every artifact, stopping at the first failure."""
    artifacts = []
    for path in paths:
        result = load_file(path)
        if isinstance(result, LoadError):
            return result
        artifacts.append(result)
    return artifacts


def generic_dot_merlin(
    paths: Sequence[Path],
    *,
    quoting: QuotingStrategy | None = None,
) -> str:
    """Load, merge and render ``paths`` as one legacy document.

    Args:
        paths: Artifact files, in precedence order.
        quoting: Quoting strategy for flag tokens.

    Returns:
        The legacy document.

    Raises:
        NoConfigurationError: If ``paths`` is empty.
        ArtifactLoadError: If any file fails to load.
    """
    with span("merge", attributes={"artifacts": len(paths)}):
        loaded = load_all(paths)
        if isinstance(loaded, LoadError):
            raise loaded.to_exception()
        merged = merge_artifacts(loaded)
        logger.debug(
            "merged",
            artifacts=len(loaded),
            obj_dirs=len(merged.obj_dirs),
            src_dirs=len(merged.src_dirs),
        )
        return merged.to_dot_merlin(quoting=quoting)
