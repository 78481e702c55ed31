"""Compiler output model for merlinconf.

This module defines MerlinArtifact, the processed editor configuration of
one build unit. It is the only thing persisted by the elaboration step and
the only thing read back by the renderers and the merge.

Version History (see ``merlinconf_core.persist.FORMAT_VERSION``):
- 4: Melange flags kept separately from the base flags
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from merlinconf_core.schemas import (
    MerlinConfig,
    ModuleConfig,
    PerModule,
    PpFlag,
    PpKind,
    SuffixOverride,
)


class MerlinArtifact(BaseModel):
    """Immutable editor configuration of one build unit.

    Contract Rules:
    - Model is immutable (frozen=True)
    - Unknown fields are rejected (extra="forbid")
    - Every key of ``per_module_config`` is a source path with extensions
      removed and the file name case-folded (see ``lookup.source_key``)

    Attributes:
        config: Configuration shared by all modules of the unit.
        per_module_config: Source key -> per-module configuration.
        pp_config: Module name -> preprocessing directive (or None).

    Example:
        >>> artifact = MerlinArtifact(
        ...     config=MerlinConfig(flags=("-w", "+a")),
        ...     per_module_config={},
        ...     pp_config=PerModule[PpFlag | None].for_all(None),
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    config: MerlinConfig = Field(..., description="Shared configuration")
    per_module_config: dict[str, ModuleConfig] = Field(
        default_factory=dict,
        description="Source key -> module configuration",
    )
    pp_config: PerModule[PpFlag | None] = Field(
        default_factory=lambda: PerModule[PpFlag | None].for_all(None),
        description="Module name -> preprocessing directive",
    )

    def pp_for(self, module_config: ModuleConfig) -> PpFlag | None:
        """Preprocessing directive of the module behind ``module_config``."""
        return self.pp_config.get(module_config.module.name)


def example_artifact() -> MerlinArtifact:
    """A small artifact exercising every field kind."""
    return MerlinArtifact(
        config=MerlinConfig(
            stdlib_dir=None,
            obj_dirs=frozenset({Path("/tmp/objs")}),
            src_dirs=frozenset(),
            flags=("-x",),
            extensions=(SuffixOverride(intf=None, impl="ext"),),
            melc_flags=("-y",),
        ),
        per_module_config={},
        pp_config=PerModule[PpFlag | None].of_mapping(
            [(["Test"], PpFlag(kind=PpKind.PPX, args="-x"))],
            default=None,
        ),
    )
