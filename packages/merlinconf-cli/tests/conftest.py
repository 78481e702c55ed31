"""Shared test fixtures for merlinconf-cli tests.

Provides CliRunner fixtures and persisted artifacts to run the commands
against.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from merlinconf_core.compiler import MerlinArtifact, example_artifact
from merlinconf_core.persist import header, write_file
from merlinconf_core.schemas import MerlinConfig, Module, ModuleConfig, PerModule, PpFlag, PpKind
from merlinconf_core.settings import get_settings


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog like the CLI default: warnings and up, on stderr."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Record configure_logging calls instead of reconfiguring logging.

    Returns:
        The keyword arguments of every call, in order.
    """
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(
        "merlinconf_core.observability.configure_logging",
        lambda **kwargs: calls.append(kwargs),
    )
    return calls


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def sample_artifact() -> MerlinArtifact:
    """Artifact of a unit with modules Foo (ppx, wrapped) and Bar."""
    return MerlinArtifact(
        config=MerlinConfig(
            stdlib_dir=Path("/opt/ocaml/lib"),
            obj_dirs=frozenset({Path("/build/.foo.objs/byte")}),
            src_dirs=frozenset({Path("/src/foo")}),
            flags=("-w", "+a", "-g"),
        ),
        per_module_config={
            "src/foo": ModuleConfig(
                module=Module(name="foo", impl=Path("src/foo.ml")),
                opens=("Mylib",),
            ),
            "src/bar": ModuleConfig(module=Module(name="bar", impl=Path("src/bar.ml"))),
        },
        pp_config=PerModule[PpFlag | None].of_mapping(
            [(["Foo"], PpFlag(kind=PpKind.PPX, args="/build/ppx.exe --as-ppx"))],
            default=None,
        ),
    )


@pytest.fixture
def write_artifact(tmp_path: Path) -> Callable[[str, MerlinArtifact], Path]:
    """Factory fixture persisting an artifact under tmp_path.

    Returns:
        Function writing the artifact and returning its path.
    """

    def _write(name: str, artifact: MerlinArtifact) -> Path:
        path = tmp_path / ".merlin-conf" / name
        write_file(path, artifact)
        return path

    return _write


@pytest.fixture
def artifact_file(
    write_artifact: Callable[[str, MerlinArtifact], Path],
    sample_artifact: MerlinArtifact,
) -> Path:
    """Path of the persisted sample artifact."""
    return write_artifact("lib-foo", sample_artifact)


@pytest.fixture
def example_file(write_artifact: Callable[[str, MerlinArtifact], Path]) -> Path:
    """Path of the persisted example artifact."""
    return write_artifact("exe-main", example_artifact())


@pytest.fixture
def stale_file(tmp_path: Path) -> Path:
    """Artifact written by an incompatible version."""
    path = tmp_path / "stale"
    path.write_bytes(header(version=3) + b"{}")
    return path
