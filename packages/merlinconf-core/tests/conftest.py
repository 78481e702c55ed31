"""Shared pytest fixtures for merlinconf-core tests.

This module provides structlog capture, a scriptable fake of the build
context, and small build-graph values used across the unit tests.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog

from merlinconf_core.schemas import (
    Action,
    Library,
    Module,
    ModuleTable,
    ObjDir,
    PpxPreprocessing,
    StanzaDescriptor,
)
from merlinconf_core.settings import get_settings


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterable[None]:
    """Drop cached settings so environment changes are seen by each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeBuildContext:
    """Scriptable BuildContext.

    Every query named in ``failing`` raises RuntimeError, and the source
    directories of every library named in ``failing_libs`` raise
    LookupError. Calls are recorded in ``calls`` as (query, argument) pairs.
    """

    def __init__(
        self,
        *,
        libraries: dict[str, Library] | None = None,
        closures: dict[str, Sequence[Library]] | None = None,
        source_dirs: dict[str, Iterable[Path]] | None = None,
        delays: dict[str, float] | None = None,
        expand: Callable[[Action], Action] | None = None,
        ppx: tuple[Path, Sequence[str]] | None = None,
        melange_stdlib: Sequence[Path] = (),
        melc: Path | None = None,
        failing: Iterable[str] = (),
        failing_libs: Iterable[str] = (),
    ) -> None:
        self.libraries = libraries or {}
        self.closures = closures or {}
        self.source_dirs = source_dirs or {}
        self.delays = delays or {}
        self.expand = expand or (lambda action: action)
        self.ppx = ppx
        self.melange_stdlib = list(melange_stdlib)
        self.melc = melc
        self.failing = set(failing)
        self.failing_libs = set(failing_libs)
        self.calls: list[tuple[str, Any]] = []

    def _enter(self, query: str, arg: Any = None) -> None:
        self.calls.append((query, arg))
        if query in self.failing:
            raise RuntimeError(f"{query} failed")

    def count(self, query: str) -> int:
        return sum(1 for name, _ in self.calls if name == query)

    async def find_library(self, name: str) -> Library | None:
        self._enter("find_library", name)
        return self.libraries.get(name)

    async def library_closure(self, libs: Sequence[Library]) -> Sequence[Library]:
        self._enter("library_closure", [lib.name for lib in libs])
        closure: list[Library] = []
        for lib in libs:
            closure.extend(self.closures.get(lib.name, [lib]))
        return closure

    async def library_source_dirs(self, lib: Library) -> Iterable[Path]:
        self._enter("library_source_dirs", lib.name)
        await asyncio.sleep(self.delays.get(lib.name, 0))
        if lib.name in self.failing_libs:
            raise LookupError(f"no sources for {lib.name}")
        return self.source_dirs.get(lib.name, [lib.src_dir])

    async def expand_action(self, action: Action, *, dir: Path) -> Action:
        self._enter("expand_action", action)
        return self.expand(action)

    async def ppx_driver(
        self,
        spec: PpxPreprocessing,
        *,
        libname: str | None,
        dir: Path,
    ) -> tuple[Path, Sequence[str]]:
        self._enter("ppx_driver", spec.pps)
        if self.ppx is None:
            raise LookupError("no ppx driver")
        return self.ppx

    async def melange_stdlib_dirs(self, *, dir: Path) -> Sequence[Path]:
        self._enter("melange_stdlib_dirs")
        return self.melange_stdlib

    async def melange_compiler(self, *, dir: Path) -> Path:
        self._enter("melange_compiler")
        if self.melc is None:
            raise FileNotFoundError("melc")
        return self.melc


@pytest.fixture
def fake_context() -> type[FakeBuildContext]:
    """Return the FakeBuildContext class for tests to instantiate."""
    return FakeBuildContext


def _obj_dir(root: str) -> ObjDir:
    base = Path(root)
    return ObjDir(
        byte_dir=base / "byte",
        melange_dir=base / "melange",
        public_cmi_ocaml_dir=base / "public_cmi",
        public_cmi_melange_dir=base / "melange_public",
    )


@pytest.fixture
def obj_dir() -> ObjDir:
    """Object directories of the unit under test."""
    return _obj_dir("/build/src/.foo.objs")


@pytest.fixture
def make_library() -> Callable[[str], Library]:
    """Factory fixture creating a library rooted at ``/build/<name>``."""

    def _make(name: str) -> Library:
        return Library(
            name=name,
            obj_dir=_obj_dir(f"/build/{name}/.{name}.objs"),
            src_dir=Path(f"/src/{name}"),
        )

    return _make


@pytest.fixture
def single_module() -> ModuleTable:
    """Module table with one module ``Foo`` (``src/foo.ml`` + ``src/foo.mli``)."""
    return ModuleTable(
        modules=(
            Module(name="foo", impl=Path("src/foo.ml"), intf=Path("src/foo.mli")),
        )
    )


@pytest.fixture
def make_descriptor(obj_dir: ObjDir, single_module: ModuleTable) -> Callable[..., StanzaDescriptor]:
    """Factory fixture for StanzaDescriptor with sensible defaults."""

    def _make(**overrides: Any) -> StanzaDescriptor:
        kwargs: dict[str, Any] = {
            "ident": "lib-foo",
            "requires": [],
            "stdlib_dir": Path("/opt/ocaml/lib"),
            "flags": [],
            "modules": single_module,
            "obj_dir": obj_dir,
            "modes": "exe",
            "source_dirs": [Path("/src/foo")],
        }
        kwargs.update(overrides)
        return StanzaDescriptor.make(**kwargs)

    return _make
