"""Stanza descriptor: what is known synchronously about one build unit.

A StanzaDescriptor is built once per library or executable when its rules
are generated, and never changes afterwards. It carries the raw inputs of
the elaboration step (see ``merlinconf_core.compiler``):

- the compilation mode (OCaml or Melange)
- the required libraries, already resolved upstream
- the deferred compiler flags
- the per-module preprocessing specifications
- the module table, private object directory and source dialects

The build-graph value types the descriptor refers to (libraries, object
directories, dialects, preprocessing actions) are defined here as well.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from merlinconf_core.schemas.directives import PerModule, SuffixOverride
from merlinconf_core.schemas.modules import ModuleTable

logger = structlog.get_logger(__name__)

INPUT_FILE = "%{input-file}"
"""Placeholder standing for the source file in a preprocessing action."""

FlagsThunk = Callable[[], Awaitable[Sequence[str]]]


class LibMode(str, Enum):
    """Backend a build unit is configured for.

    Attributes:
        OCAML: The native OCaml compiler (bytecode object layout).
        MELANGE: The Melange JavaScript backend.
    """

    OCAML = "ocaml"
    MELANGE = "melange"


class Visibility(str, Enum):
    """Whether an object directory is looked up for the unit itself or its users."""

    PRIVATE = "private"
    PUBLIC = "public"


class ObjDir(BaseModel):
    """Object directories of a library or executable.

    Attributes:
        byte_dir: Private bytecode object directory.
        melange_dir: Private Melange object directory.
        public_cmi_ocaml_dir: Compiled interfaces exposed to OCaml users.
        public_cmi_melange_dir: Compiled interfaces exposed to Melange users.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    byte_dir: Path
    melange_dir: Path
    public_cmi_ocaml_dir: Path
    public_cmi_melange_dir: Path


_OBJ_DIR_TABLE: dict[tuple[Visibility, LibMode], str] = {
    (Visibility.PRIVATE, LibMode.OCAML): "byte_dir",
    (Visibility.PRIVATE, LibMode.MELANGE): "melange_dir",
    (Visibility.PUBLIC, LibMode.OCAML): "public_cmi_ocaml_dir",
    (Visibility.PUBLIC, LibMode.MELANGE): "public_cmi_melange_dir",
}


def obj_dir_of_lib(visibility: Visibility, mode: LibMode, obj_dir: ObjDir) -> Path:
    """Select the object directory for ``visibility`` x ``mode``.

    Example:
        >>> obj_dir_of_lib(Visibility.PRIVATE, LibMode.OCAML, objs)  # doctest: +SKIP
        PosixPath('_build/default/src/.foo.objs/byte')
    """
    path: Path = getattr(obj_dir, _OBJ_DIR_TABLE[(visibility, mode)])
    return path


class Library(BaseModel):
    """A resolved library handle.

    Attributes:
        name: Library name.
        obj_dir: Object directories of the library.
        src_dir: Root source directory of the library.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Library name")
    obj_dir: ObjDir = Field(..., description="Object directories")
    src_dir: Path = Field(..., description="Source directory")


class ModeSet(BaseModel):
    """Compilation modes enabled on a library stanza."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    byte: bool = True
    native: bool = True
    melange: bool = False

    def for_merlin(self) -> LibMode:
        """Single mode the editor is configured for.

        OCaml wins whenever one of its modes is enabled.
        """
        if self.melange and not (self.byte or self.native):
            return LibMode.MELANGE
        return LibMode.OCAML


CompileModes = Union[ModeSet, Literal["exe", "melange_emit"]]
"""Library mode set, executable, or Melange emit stanza."""


def resolve_mode(modes: CompileModes) -> LibMode:
    """Resolve a stanza's compilation modes to exactly one LibMode."""
    if modes == "exe":
        return LibMode.OCAML
    if modes == "melange_emit":
        return LibMode.MELANGE
    if isinstance(modes, ModeSet):
        return modes.for_merlin()
    raise TypeError(f"unknown compilation modes: {modes!r}")


class Dialect(BaseModel):
    """A registered source dialect and its file suffixes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    impl: str | None = None
    intf: str | None = None


_BUILTIN_SUFFIXES = (".ml", ".mli")


def extensions_for_merlin(dialects: Iterable[Dialect]) -> tuple[SuffixOverride, ...]:
    """Suffix overrides for every non-builtin dialect, in registration order."""
    return tuple(
        SuffixOverride(impl=d.impl, intf=d.intf)
        for d in dialects
        if (d.impl, d.intf) != _BUILTIN_SUFFIXES
    )


# Preprocessing actions


class RunAction(BaseModel):
    """Run ``program`` with ``args``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["run"] = "run"
    program: str = Field(..., min_length=1)
    args: tuple[str, ...] = ()


class ChdirAction(BaseModel):
    """Run ``action`` from directory ``dir``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["chdir"] = "chdir"
    dir: Path
    action: Action


class SystemAction(BaseModel):
    """Run ``command`` through the shell."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["system"] = "system"
    command: str


Action = Annotated[
    Union[RunAction, ChdirAction, SystemAction],
    Field(discriminator="kind"),
]

ChdirAction.model_rebuild()


class NoPreprocessing(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["no_preprocessing"] = "no_preprocessing"


class ActionPreprocessing(BaseModel):
    """Preprocess sources with a user action reading ``%{input-file}``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["action"] = "action"
    action: Action


class PpxPreprocessing(BaseModel):
    """Preprocess sources with a pipeline of ppx rewriters.

    Attributes:
        pps: Rewriter library names, in pipeline order.
        flags: Extra driver flags.
        staged: Whether the rewriters run as a staged pipeline.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["pps"] = "pps"
    pps: tuple[str, ...] = Field(..., min_length=1)
    flags: tuple[str, ...] = ()
    staged: bool = False


class FutureSyntax(BaseModel):
    """Compatibility preprocessing for syntax newer than the compiler."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["future_syntax"] = "future_syntax"


PreprocessSpec = Union[NoPreprocessing, ActionPreprocessing, PpxPreprocessing, FutureSyntax]


def _constant_flags(flags: Sequence[str]) -> FlagsThunk:
    frozen = tuple(flags)

    async def flags_thunk() -> Sequence[str]:
        return frozen

    return flags_thunk


def _deferred_flags(compute: FlagsThunk) -> FlagsThunk:
    async def flags_thunk() -> Sequence[str]:
        return tuple(await compute())

    return flags_thunk


def _with_alias_open(alias: str, flags: FlagsThunk) -> FlagsThunk:
    async def flags_thunk() -> Sequence[str]:
        return ("-open", alias, *await flags())

    return flags_thunk


class StanzaDescriptor(BaseModel):
    """Immutable raw description of one build unit.

    Use ``StanzaDescriptor.make`` rather than the constructor: it resolves
    the compilation mode, selects the private object directory, absorbs
    upstream library resolution failures and wires the alias module into
    the flags.

    Attributes:
        ident: Identity token of the unit (names its artifact file).
        stdlib_dir: Standard library directory of the OCaml toolchain.
        mode: Resolved compilation mode.
        requires: Directly required libraries.
        flags: Deferred computation of the compiler flags.
        preprocess: Preprocessing specification per module name.
        libname: Local library name, for executables None.
        source_dirs: Source directories declared by the unit.
        objs_dirs: Private object directories of the unit.
        extensions: Suffix overrides of the registered dialects.
        modules: Module table of the unit.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ident: str = Field(..., min_length=1)
    stdlib_dir: Path
    mode: LibMode
    requires: frozenset[Library] = frozenset()
    flags: Callable[[], Awaitable[Sequence[str]]]
    preprocess: PerModule[PreprocessSpec] = Field(
        default_factory=lambda: PerModule[PreprocessSpec].for_all(NoPreprocessing())
    )
    libname: str | None = None
    source_dirs: frozenset[Path] = frozenset()
    objs_dirs: frozenset[Path] = frozenset()
    extensions: tuple[SuffixOverride, ...] = ()
    modules: ModuleTable = Field(default_factory=ModuleTable)

    @classmethod
    def make(
        cls,
        *,
        ident: str,
        requires: Iterable[Library] | BaseException | None,
        stdlib_dir: Path,
        flags: Sequence[str] | FlagsThunk,
        modules: ModuleTable,
        obj_dir: ObjDir,
        modes: CompileModes,
        preprocess: PerModule[PreprocessSpec] | None = None,
        libname: str | None = None,
        source_dirs: Iterable[Path] = (),
        dialects: Iterable[Dialect] = (),
    ) -> StanzaDescriptor:
        """Build the descriptor of one build unit.

        Args:
            ident: Identity token of the unit.
            requires: Resolved required libraries, or the exception library
                resolution failed with. A failure yields an empty set; the
                editor configuration must never fail the build.
            stdlib_dir: Standard library directory.
            flags: Compiler flags, or a callable returning an awaitable of
                them.
            modules: Module table of the unit.
            obj_dir: Object directories of the unit.
            modes: Library mode set, ``"exe"`` or ``"melange_emit"``.
            preprocess: Preprocessing specification per module.
            libname: Local library name.
            source_dirs: Source directories declared by the unit.
            dialects: Registered source dialects.

        Returns:
            The immutable descriptor.
        """
        mode = resolve_mode(modes)

        if isinstance(requires, BaseException):
            logger.debug(
                "requires_unresolved",
                ident=ident,
                error=f"{type(requires).__name__}: {requires}",
            )
            required: frozenset[Library] = frozenset()
        else:
            required = frozenset(requires or ())

        thunk = _deferred_flags(flags) if callable(flags) else _constant_flags(flags)
        if modules.alias_module is not None:
            thunk = _with_alias_open(modules.alias_module, thunk)

        return cls(
            ident=ident,
            stdlib_dir=stdlib_dir,
            mode=mode,
            requires=required,
            flags=thunk,
            preprocess=preprocess or PerModule[PreprocessSpec].for_all(NoPreprocessing()),
            libname=libname,
            source_dirs=frozenset(source_dirs),
            objs_dirs=frozenset({obj_dir_of_lib(Visibility.PRIVATE, mode, obj_dir)}),
            extensions=extensions_for_merlin(dialects),
            modules=modules,
        )
