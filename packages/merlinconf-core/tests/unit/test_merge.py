"""Unit tests for the multi-artifact merge."""

from __future__ import annotations

from pathlib import Path

import pytest

from merlinconf_core.compiler import MerlinArtifact, example_artifact
from merlinconf_core.errors import ArtifactLoadError, NoConfigurationError
from merlinconf_core.merge import generic_dot_merlin, merge_artifacts
from merlinconf_core.persist import header, write_file
from merlinconf_core.quoting import PosixQuoting
from merlinconf_core.schemas import MerlinConfig, PerModule, PpFlag, PpKind, SuffixOverride


def make_artifact(**config: object) -> MerlinArtifact:
    return MerlinArtifact(config=MerlinConfig(**config))  # type: ignore[arg-type]


class TestMergeArtifacts:
    """Folding several artifacts."""

    def test_empty_list(self) -> None:
        with pytest.raises(NoConfigurationError, match="No merlin configuration found"):
            merge_artifacts([])

    def test_directories_unioned(self) -> None:
        merged = merge_artifacts(
            [
                make_artifact(obj_dirs=frozenset({Path("/d1")}), src_dirs=frozenset({Path("/s")})),
                make_artifact(obj_dirs=frozenset({Path("/d2")}), src_dirs=frozenset({Path("/s")})),
            ]
        )

        assert merged.obj_dirs == frozenset({Path("/d1"), Path("/d2")})
        assert merged.src_dirs == frozenset({Path("/s")})

    def test_first_stdlib_wins(self) -> None:
        merged = merge_artifacts(
            [
                make_artifact(stdlib_dir=Path("/first")),
                make_artifact(stdlib_dir=Path("/second")),
            ]
        )
        assert merged.stdlib_dir == Path("/first")

    def test_first_stdlib_wins_even_if_absent(self) -> None:
        merged = merge_artifacts([make_artifact(), make_artifact(stdlib_dir=Path("/second"))])
        assert merged.stdlib_dir is None

    def test_first_non_empty_melc_flags(self) -> None:
        merged = merge_artifacts(
            [
                make_artifact(),
                make_artifact(melc_flags=("-ppx", "melc -as-ppx")),
                make_artifact(melc_flags=("-ppx", "other -as-ppx")),
            ]
        )
        assert merged.melc_flags == ("-ppx", "melc -as-ppx")

    def test_lists_accumulated_in_order(self) -> None:
        merged = merge_artifacts(
            [
                make_artifact(flags=("-a",), extensions=(SuffixOverride(impl=".re"),)),
                make_artifact(flags=("-b",), extensions=(SuffixOverride(impl=".re"),)),
            ]
        )

        assert merged.flags == (("-a",), ("-b",))
        assert len(merged.extensions) == 2
        assert len(merged.pp_configs) == 2

    def test_melc_flags_printed_first(self) -> None:
        merged = merge_artifacts([make_artifact(flags=("-g",), melc_flags=("-y",))])
        assert merged.flag_lines() == [("-y",), ("-g",)]


class TestGenericDotMerlin:
    """Loading, merging and rendering files."""

    def test_document(self, tmp_path: Path) -> None:
        first = MerlinArtifact(
            config=MerlinConfig(stdlib_dir=Path("/lib"), obj_dirs=frozenset({Path("/d1")}), flags=("-g",)),
            pp_config=PerModule[PpFlag | None].for_all(PpFlag(kind=PpKind.PP, args="cppo")),
        )
        write_file(tmp_path / "a", first)
        write_file(tmp_path / "b", example_artifact())

        text = generic_dot_merlin([tmp_path / "a", tmp_path / "b"], quoting=PosixQuoting())

        assert text == (
            "EXCLUDE_QUERY_DIR\n"
            "STDLIB /lib\n"
            "B /d1\n"
            "B /tmp/objs\n"
            "SUFFIX ext ext\n"
            "# FLG -pp cppo\n"
            "# FLG -ppx -x\n"
            "# FLG -y\n"
            "# FLG -g\n"
            "# FLG -x\n"
        )

    def test_empty_paths(self) -> None:
        with pytest.raises(NoConfigurationError):
            generic_dot_merlin([])

    def test_one_bad_file_aborts(self, tmp_path: Path) -> None:
        write_file(tmp_path / "good", example_artifact())
        (tmp_path / "bad").write_bytes(header(version=1) + b"{}")

        with pytest.raises(ArtifactLoadError) as exc_info:
            generic_dot_merlin([tmp_path / "good", tmp_path / "bad"])

        assert exc_info.value.path == str(tmp_path / "bad")
        assert "rebuild" in exc_info.value.user_message.lower()
