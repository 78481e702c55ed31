"""Directive value types for editor configuration.

This module defines the data that ends up in the editor's directives:
- PpKind / PpFlag: a preprocessing directive (``-pp`` or ``-ppx``)
- SuffixOverride: implementation/interface suffix pair of a source dialect
- MerlinConfig: configuration shared by all modules of a build unit
- PerModule: per-module-name values with a default

Directory sets are ``frozenset`` (deduplicated, unordered); flag and suffix
lists are tuples because the editor reads later tokens as overriding
earlier ones.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

T = TypeVar("T")


class PpKind(str, Enum):
    """Kind of preprocessing directive.

    Attributes:
        PP: Text substitution through an external program.
        PPX: Macro expansion through a rewriter driver.
    """

    PP = "pp"
    PPX = "ppx"

    @property
    def flag(self) -> str:
        """Compiler flag introducing the directive (``-pp`` or ``-ppx``)."""
        return f"-{self.value}"


class PpFlag(BaseModel):
    """A preprocessing directive: its kind and a single command line.

    Example:
        >>> PpFlag(kind=PpKind.PPX, args="/_build/ppx.exe --as-ppx").kind.flag
        '-ppx'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: PpKind = Field(..., description="Directive kind")
    args: str = Field(..., description="Encoded command line")


class SuffixOverride(BaseModel):
    """Filename suffixes registered by one source dialect.

    Attributes:
        impl: Implementation suffix, if the dialect has one.
        intf: Interface suffix, if the dialect has one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    impl: str | None = Field(default=None, description="Implementation suffix")
    intf: str | None = Field(default=None, description="Interface suffix")

    def resolve(self) -> tuple[str, str] | None:
        """Return the (impl, intf) pair to emit, or None.

        A missing side reuses the other one; with both missing nothing is
        emitted.

        Example:
            >>> SuffixOverride(impl="eli").resolve()
            ('eli', 'eli')
        """
        if self.impl is not None and self.intf is not None:
            return (self.impl, self.intf)
        if self.impl is not None:
            return (self.impl, self.impl)
        if self.intf is not None:
            return (self.intf, self.intf)
        return None


class MerlinConfig(BaseModel):
    """Configuration shared by every module of a build unit.

    Attributes:
        stdlib_dir: Standard library directory (STDLIB), if known.
        obj_dirs: Object directories (B).
        src_dirs: Source directories (S).
        flags: Base compiler flags (FLG), in order.
        extensions: Suffix overrides (SUFFIX), one per dialect, in order.
        melc_flags: Flags only relevant to the Melange backend.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    stdlib_dir: Path | None = Field(default=None, description="Standard library")
    obj_dirs: frozenset[Path] = Field(default=frozenset(), description="B directories")
    src_dirs: frozenset[Path] = Field(default=frozenset(), description="S directories")
    flags: tuple[str, ...] = Field(default=(), description="Base flags")
    extensions: tuple[SuffixOverride, ...] = Field(default=(), description="Suffixes")
    melc_flags: tuple[str, ...] = Field(default=(), description="Melange flags")

    @field_serializer("obj_dirs", "src_dirs")
    def _serialize_dirs(self, dirs: frozenset[Path]) -> list[str]:
        return [str(d) for d in sorted(dirs)]


class PerModule(BaseModel, Generic[T]):
    """Values indexed by module name, with a default for unlisted modules.

    Attributes:
        values: Explicit per-module values, keyed by capitalized module name.
        default: Value of every module not present in ``values``.

    Example:
        >>> table = PerModule[int].of_mapping([(["foo", "Bar"], 1)], default=0)
        >>> table.get("Foo"), table.get("Baz")
        (1, 0)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    values: dict[str, T] = Field(default_factory=dict, description="Per-module values")
    default: T = Field(..., description="Value for unlisted modules")

    @field_validator("values", mode="before")
    @classmethod
    def _capitalize_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k[:1].upper() + k[1:]: v for k, v in value.items()}
        return value

    @classmethod
    def for_all(cls, value: T) -> PerModule[T]:
        """Table giving ``value`` to every module."""
        return cls(values={}, default=value)

    @classmethod
    def of_mapping(
        cls,
        entries: Iterable[tuple[Iterable[str], T]],
        *,
        default: T,
    ) -> PerModule[T]:
        """Build a table from (module names, value) groups.

        Raises:
            ValueError: If a module name appears in more than one group.
        """
        values: dict[str, T] = {}
        for names, value in entries:
            for name in names:
                key = name[:1].upper() + name[1:]
                if key in values:
                    raise ValueError(f"module {key} is listed more than once")
                values[key] = value
        return cls(values=values, default=default)

    def get(self, name: str) -> T:
        """Value for module ``name``."""
        return self.values.get(name[:1].upper() + name[1:], self.default)

    def distinct(self) -> list[T]:
        """Distinct values, default first, then in insertion order."""
        seen: list[T] = []
        for value in (self.default, *self.values.values()):
            if value not in seen:
                seen.append(value)
        return seen

    def items(self) -> list[tuple[str, T]]:
        """Explicit (module name, value) entries in insertion order."""
        return list(self.values.items())
