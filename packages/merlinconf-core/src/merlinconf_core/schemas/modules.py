"""Module identity and module table models.

A build unit owns a table of compiled modules. Each module has a name, a
kind, and up to two source files (implementation and interface). A wrapped
library additionally has an alias module that re-exports every other module
under the library's namespace; the alias module is implicitly opened when
editing any of the wrapped modules.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from merlinconf_core.schemas.directives import PpFlag


def module_name(name: str) -> str:
    """Normalize a module name to its capitalized form.

    Example:
        >>> module_name("foo_bar")
        'Foo_bar'
    """
    if not name:
        raise ValueError("module name must not be empty")
    return name[0].upper() + name[1:]


class ModuleKind(str, Enum):
    """Kind of a compiled module.

    Attributes:
        IMPL: Regular module with an implementation (and maybe an interface).
        INTF_ONLY: Interface-only module.
        ALIAS: Generated alias module of a wrapped library.
        VIRTUAL: Placeholder declared by a virtual library, without sources
            of its own in the implementing unit.
        IMPL_VMODULE: Implementation of a virtual module.
    """

    IMPL = "impl"
    INTF_ONLY = "intf_only"
    ALIAS = "alias"
    VIRTUAL = "virtual"
    IMPL_VMODULE = "impl_vmodule"


class Module(BaseModel):
    """A compiled module owned by a build unit.

    Attributes:
        name: Capitalized module name.
        kind: Module kind.
        impl: Path of the implementation source file, if any.
        intf: Path of the interface source file, if any.
        pp: Preprocessing directive attached directly to the module.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Module name")
    kind: ModuleKind = Field(default=ModuleKind.IMPL, description="Module kind")
    impl: Path | None = Field(default=None, description="Implementation source")
    intf: Path | None = Field(default=None, description="Interface source")
    pp: PpFlag | None = Field(default=None, description="Attached preprocessing")

    @field_validator("name")
    @classmethod
    def _capitalize(cls, value: str) -> str:
        return module_name(value)

    @property
    def sources(self) -> list[Path]:
        """Source files of the module, implementation first."""
        return [p for p in (self.impl, self.intf) if p is not None]

    def set_pp(self, pp: PpFlag | None) -> Module:
        """Return a copy of the module with a different attached directive."""
        return self.model_copy(update={"pp": pp})


class ModuleTable(BaseModel):
    """Modules of one build unit.

    Attributes:
        modules: Modules in declaration order.
        alias_module: Name of the alias (umbrella) module of a wrapped
            library, or None for unwrapped units and executables.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    modules: tuple[Module, ...] = Field(default=(), description="Modules")
    alias_module: str | None = Field(default=None, description="Alias module name")

    @field_validator("alias_module")
    @classmethod
    def _capitalize_alias(cls, value: str | None) -> str | None:
        return module_name(value) if value is not None else None

    def alias_for(self, module: Module) -> list[str]:
        """Names of the modules that must be opened when editing ``module``.

        The alias module itself is never opened inside its own source.
        """
        if self.alias_module is None or module.name == self.alias_module:
            return []
        return [self.alias_module]

    def without_virtual(self) -> list[Module]:
        """Modules that own real source files in this unit."""
        return [m for m in self.modules if m.kind is not ModuleKind.VIRTUAL]


class ModuleConfig(BaseModel):
    """Per-module part of the editor configuration.

    Attributes:
        opens: Module names implicitly opened for this module, in order.
        module: The owning module, with any attached directive cleared;
            directives are tracked per module name on the artifact.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    opens: tuple[str, ...] = Field(default=(), description="Opened modules")
    module: Module = Field(..., description="Owning module")
