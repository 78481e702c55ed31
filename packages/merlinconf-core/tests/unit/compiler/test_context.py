"""Unit tests for SafeBuildContext failure absorption."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from merlinconf_core.compiler import SafeBuildContext
from merlinconf_core.schemas import Library, PpxPreprocessing, RunAction

ALL_QUERIES = {
    "find_library",
    "library_closure",
    "library_source_dirs",
    "expand_action",
    "ppx_driver",
    "melange_stdlib_dirs",
    "melange_compiler",
}


class TestSafeBuildContext:
    """Every query degrades to an empty or absent value."""

    def test_failures_absorbed(self, fake_context: type, make_library: Callable[[str], Library]) -> None:
        """No query raises when the underlying context does."""
        safe = SafeBuildContext(fake_context(failing=ALL_QUERIES))
        lib = make_library("a")
        here = Path("/build")

        async def run() -> list[object]:
            return [
                await safe.find_library("a"),
                await safe.library_closure([lib]),
                await safe.library_source_dirs(lib),
                await safe.expand_action(RunAction(program="/bin/pp"), dir=here),
                await safe.ppx_driver(PpxPreprocessing(pps=("ppx_a",)), libname=None, dir=here),
                await safe.melange_stdlib_dirs(dir=here),
                await safe.melange_compiler(dir=here),
            ]

        assert asyncio.run(run()) == [None, [], frozenset(), None, None, [], None]

    def test_failure_logged_at_debug(
        self,
        fake_context: type,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Absorbed failures are logged, never raised."""
        safe = SafeBuildContext(fake_context(failing={"find_library"}))

        asyncio.run(safe.find_library("melange"))

        out = capsys.readouterr().out
        assert "build_query_failed" in out
        assert "find_library" in out

    def test_successful_answers_pass_through(
        self,
        fake_context: type,
        make_library: Callable[[str], Library],
    ) -> None:
        lib = make_library("a")
        safe = SafeBuildContext(fake_context(libraries={"a": lib}, source_dirs={"a": [Path("/s")]}))

        assert asyncio.run(safe.find_library("a")) == lib
        assert asyncio.run(safe.library_source_dirs(lib)) == frozenset({Path("/s")})

    def test_resolve_flags_absorbs_failure(self, fake_context: type) -> None:
        async def flags() -> list[str]:
            raise ValueError("bad flags")

        safe = SafeBuildContext(fake_context())

        assert asyncio.run(safe.resolve_flags(flags)) == []
