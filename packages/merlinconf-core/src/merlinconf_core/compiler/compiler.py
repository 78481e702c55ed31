"""Compiler class for merlinconf.

This module implements the elaboration step that turns a StanzaDescriptor
plus live answers from the build graph into a MerlinArtifact:

1. Standard library: configured directory (OCaml) or first Melange
   candidate
2. Required libraries, plus the ``melange`` closure in Melange mode
3. Deferred flags
4. Directory fan-out: per-library source directories queried
   concurrently, folded with set union
5. Melange flags: ``-ppx "<melc> -as-ppx"`` when ``melc`` is found
6. Per-module preprocessing directives
7. Per-module index: one entry per owned source file

Set-valued results are folded in any order; list-valued results (flags,
suffixes, opens) keep their declared order. Build query failures are
absorbed by SafeBuildContext, so ``process`` never raises because of them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog

from merlinconf_core.compiler.context import BuildContext, SafeBuildContext
from merlinconf_core.compiler.models import MerlinArtifact
from merlinconf_core.compiler.preprocess import pp_flags
from merlinconf_core.lookup import source_key
from merlinconf_core.observability import span
from merlinconf_core.quoting import QuotingStrategy, select_quoting, serialize_path
from merlinconf_core.schemas import (
    Library,
    LibMode,
    MerlinConfig,
    ModuleConfig,
    ModuleTable,
    PerModule,
    PpFlag,
    PpKind,
    StanzaDescriptor,
    Visibility,
    obj_dir_of_lib,
)

logger = structlog.get_logger(__name__)

MELANGE_LIBRARY = "melange"
"""Support library whose closure every Melange unit implicitly requires."""


class Compiler:
    """Elaborate StanzaDescriptors into MerlinArtifacts.

    Example:
        >>> compiler = Compiler(build_context)
        >>> artifact = await compiler.process(descriptor, dir=Path("src"))
    """

    def __init__(
        self,
        context: BuildContext,
        *,
        quoting: QuotingStrategy | None = None,
    ) -> None:
        """Initialize the Compiler.

        Args:
            context: Build-graph queries. Failures are absorbed.
            quoting: Quoting strategy for encoded command lines. Defaults
                to the strategy of the running platform.
        """
        self.context = SafeBuildContext(context)
        self.quoting = quoting or select_quoting()

    async def process(
        self,
        descriptor: StanzaDescriptor,
        *,
        dir: Path,
        more_src_dirs: Iterable[Path] = (),
    ) -> MerlinArtifact:
        """Elaborate ``descriptor`` into an artifact.

        Args:
            descriptor: The build unit to configure.
            dir: Directory the unit is defined in.
            more_src_dirs: Extra source directories supplied by the caller.

        Returns:
            Immutable MerlinArtifact.
        """
        with span("elaborate", attributes={"ident": descriptor.ident, "mode": descriptor.mode.value}):
            config, pp_config = await asyncio.gather(
                self._config(descriptor, dir=dir, more_src_dirs=frozenset(more_src_dirs)),
                self._pp_config(descriptor, dir=dir),
            )
            per_module_config = self._per_module_config(descriptor.modules)

        logger.debug(
            "elaborated",
            ident=descriptor.ident,
            obj_dirs=len(config.obj_dirs),
            src_dirs=len(config.src_dirs),
            modules=len(per_module_config),
        )
        return MerlinArtifact(
            config=config,
            per_module_config=per_module_config,
            pp_config=pp_config,
        )

    async def _config(
        self,
        descriptor: StanzaDescriptor,
        *,
        dir: Path,
        more_src_dirs: frozenset[Path],
    ) -> MerlinConfig:
        stdlib_dir = await self._stdlib_dir(descriptor, dir=dir)
        requires = await self._requires(descriptor)
        flags, (src_dirs, obj_dirs) = await asyncio.gather(
            self.context.resolve_flags(descriptor.flags),
            self._directories(descriptor, requires),
        )
        melc_flags = await self._melc_flags(descriptor, dir=dir)

        return MerlinConfig(
            stdlib_dir=stdlib_dir,
            obj_dirs=obj_dirs,
            src_dirs=src_dirs | more_src_dirs,
            flags=tuple(flags),
            extensions=descriptor.extensions,
            melc_flags=melc_flags,
        )

    async def _stdlib_dir(self, descriptor: StanzaDescriptor, *, dir: Path) -> Path | None:
        if descriptor.mode is LibMode.OCAML:
            return descriptor.stdlib_dir
        dirs = await self.context.melange_stdlib_dirs(dir=dir)
        return dirs[0] if dirs else None

    async def _requires(self, descriptor: StanzaDescriptor) -> frozenset[Library]:
        if descriptor.mode is LibMode.OCAML:
            return descriptor.requires
        melange = await self.context.find_library(MELANGE_LIBRARY)
        if melange is None:
            return descriptor.requires
        closure = await self.context.library_closure([melange])
        return descriptor.requires | frozenset(closure)

    async def _directories(
        self,
        descriptor: StanzaDescriptor,
        requires: frozenset[Library],
    ) -> tuple[frozenset[Path], frozenset[Path]]:
        """Fold every required library's directories into the unit's own."""
        libs = sorted(requires, key=lambda lib: lib.name)
        lib_src_dirs = await asyncio.gather(
            *(self.context.library_source_dirs(lib) for lib in libs)
        )

        src_dirs = set(descriptor.source_dirs)
        obj_dirs = set(descriptor.objs_dirs)
        for lib, more in zip(libs, lib_src_dirs):
            src_dirs |= more
            obj_dirs.add(obj_dir_of_lib(Visibility.PUBLIC, descriptor.mode, lib.obj_dir))
        return frozenset(src_dirs), frozenset(obj_dirs)

    async def _melc_flags(self, descriptor: StanzaDescriptor, *, dir: Path) -> tuple[str, ...]:
        if descriptor.mode is LibMode.OCAML:
            return ()
        melc = await self.context.melange_compiler(dir=dir)
        if melc is None:
            return ()
        return (PpKind.PPX.flag, f"{serialize_path(melc)} -as-ppx")

    async def _pp_config(
        self,
        descriptor: StanzaDescriptor,
        *,
        dir: Path,
    ) -> PerModule[PpFlag | None]:
        """Resolve each distinct preprocessing specification once."""
        specs = descriptor.preprocess.distinct()
        resolved: Sequence[PpFlag | None] = await asyncio.gather(
            *(
                pp_flags(
                    spec,
                    self.context,
                    libname=descriptor.libname,
                    dir=dir,
                    quoting=self.quoting,
                )
                for spec in specs
            )
        )

        def flag_of(spec: object) -> PpFlag | None:
            return resolved[specs.index(spec)]

        return PerModule[PpFlag | None](
            values={name: flag_of(spec) for name, spec in descriptor.preprocess.items()},
            default=flag_of(descriptor.preprocess.default),
        )

    def _per_module_config(self, modules: ModuleTable) -> dict[str, ModuleConfig]:
        """Map every owned source file to its module's configuration."""
        entries: dict[str, ModuleConfig] = {}
        for module in modules.without_virtual():
            config = ModuleConfig(
                module=module.set_pp(None),
                opens=tuple(modules.alias_for(module)),
            )
            for source in module.sources:
                key = source_key(source)
                existing = entries.get(key)
                if existing is not None and existing.module.name != module.name:
                    logger.warning(
                        "duplicate_source_key",
                        key=key,
                        kept=existing.module.name,
                        dropped=module.name,
                    )
                    continue
                entries[key] = config
        return entries
