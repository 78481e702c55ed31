"""Build-graph queries consumed by the elaboration step.

BuildContext is the protocol the surrounding build system implements. Any
of its coroutines may raise: a library may not resolve, a rewriter driver
may fail to build, the Melange toolchain may be missing.

SafeBuildContext is the single boundary where those failures are adapted:
upstream build failures never propagate past it. Each query degrades to
an empty or absent value at the narrowest scope, and the failure is logged
at debug level. Generating editor configuration must never fail the build.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from pathlib import Path
from typing import Protocol

import structlog

from merlinconf_core.schemas import Action, Library, PpxPreprocessing

logger = structlog.get_logger(__name__)


class BuildContext(Protocol):
    """Asynchronous queries against the build graph."""

    async def find_library(self, name: str) -> Library | None:
        """Resolve a library by name in the current scope."""
        ...

    async def library_closure(self, libs: Sequence[Library]) -> Sequence[Library]:
        """Transitive dependency closure of ``libs`` (including them)."""
        ...

    async def library_source_dirs(self, lib: Library) -> Iterable[Path]:
        """Source directories of ``lib``."""
        ...

    async def expand_action(self, action: Action, *, dir: Path) -> Action:
        """Expand variables of ``action``; programs become absolute paths."""
        ...

    async def ppx_driver(
        self,
        spec: PpxPreprocessing,
        *,
        libname: str | None,
        dir: Path,
    ) -> tuple[Path, Sequence[str]]:
        """Driver executable and effective flags of a rewriter pipeline."""
        ...

    async def melange_stdlib_dirs(self, *, dir: Path) -> Sequence[Path]:
        """Candidate standard library directories of the Melange toolchain."""
        ...

    async def melange_compiler(self, *, dir: Path) -> Path:
        """Path of the ``melc`` binary."""
        ...


class SafeBuildContext:
    """BuildContext adapter that never raises.

    Example:
        >>> safe = SafeBuildContext(context)
        >>> await safe.find_library("melange")  # None when resolution fails
    """

    def __init__(self, context: BuildContext) -> None:
        self._context = context

    def _absorb(self, query: str, error: Exception, **context: object) -> None:
        logger.debug(
            "build_query_failed",
            query=query,
            error_type=type(error).__name__,
            error=str(error),
            **context,
        )

    async def find_library(self, name: str) -> Library | None:
        try:
            return await self._context.find_library(name)
        except Exception as e:
            self._absorb("find_library", e, library=name)
            return None

    async def library_closure(self, libs: Sequence[Library]) -> list[Library]:
        try:
            return list(await self._context.library_closure(libs))
        except Exception as e:
            self._absorb("library_closure", e, libraries=[lib.name for lib in libs])
            return []

    async def library_source_dirs(self, lib: Library) -> frozenset[Path]:
        try:
            return frozenset(await self._context.library_source_dirs(lib))
        except Exception as e:
            self._absorb("library_source_dirs", e, library=lib.name)
            return frozenset()

    async def expand_action(self, action: Action, *, dir: Path) -> Action | None:
        try:
            return await self._context.expand_action(action, dir=dir)
        except Exception as e:
            self._absorb("expand_action", e, dir=str(dir))
            return None

    async def ppx_driver(
        self,
        spec: PpxPreprocessing,
        *,
        libname: str | None,
        dir: Path,
    ) -> tuple[Path, list[str]] | None:
        try:
            driver, flags = await self._context.ppx_driver(spec, libname=libname, dir=dir)
        except Exception as e:
            self._absorb("ppx_driver", e, pps=list(spec.pps))
            return None
        return driver, list(flags)

    async def melange_stdlib_dirs(self, *, dir: Path) -> list[Path]:
        try:
            return list(await self._context.melange_stdlib_dirs(dir=dir))
        except Exception as e:
            self._absorb("melange_stdlib_dirs", e, dir=str(dir))
            return []

    async def melange_compiler(self, *, dir: Path) -> Path | None:
        try:
            return await self._context.melange_compiler(dir=dir)
        except Exception as e:
            self._absorb("melange_compiler", e, dir=str(dir))
            return None

    async def resolve_flags(self, flags: Callable[[], Awaitable[Sequence[str]]]) -> list[str]:
        """Await a unit's deferred flags; a failing computation yields no flags."""
        try:
            return list(await flags())
        except Exception as e:
            self._absorb("flags", e)
            return []
