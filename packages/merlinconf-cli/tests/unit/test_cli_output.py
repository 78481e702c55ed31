"""Unit tests for merlinconf_cli.output module."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from merlinconf_cli import output


@pytest.fixture(autouse=True)
def restore_console() -> Iterator[None]:
    """Put back a default console after tests that replace it."""
    yield
    output.set_no_color(False)


class TestCreateConsole:
    def test_no_color(self) -> None:
        console = output.create_console(no_color=True)
        assert console.no_color is True

    def test_stderr(self) -> None:
        console = output.create_console(stderr=True)
        assert console.stderr is True


class TestMessages:
    """Errors and warnings are written to stderr, markup escaped."""

    def test_error_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.set_no_color(True)
        output.error("No merlin configuration found.")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "No merlin configuration found." in captured.err

    def test_warning_escapes_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.set_no_color(True)
        output.warning("/tmp/[bold]x holds no modules")

        assert "/tmp/[bold]x holds no modules" in capsys.readouterr().err
