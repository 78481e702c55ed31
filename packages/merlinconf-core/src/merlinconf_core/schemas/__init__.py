"""Schema definitions for merlinconf.

Directive Models:
- PpKind / PpFlag: Preprocessing directive
- SuffixOverride: Dialect suffix pair
- MerlinConfig: Configuration shared by a build unit
- PerModule: Per-module-name values with a default

Module Models:
- Module / ModuleKind: Compiled module identity
- ModuleTable: Modules of a build unit and its alias module
- ModuleConfig: Per-module configuration (opens + module)

Stanza Models:
- StanzaDescriptor: Raw description of one build unit
- Library / ObjDir / Dialect / ModeSet: Build-graph values
- Preprocessing specifications and actions
"""

from __future__ import annotations

from merlinconf_core.schemas.directives import (
    MerlinConfig,
    PerModule,
    PpFlag,
    PpKind,
    SuffixOverride,
)
from merlinconf_core.schemas.modules import (
    Module,
    ModuleConfig,
    ModuleKind,
    ModuleTable,
    module_name,
)
from merlinconf_core.schemas.stanza import (
    INPUT_FILE,
    Action,
    ActionPreprocessing,
    ChdirAction,
    CompileModes,
    Dialect,
    FutureSyntax,
    Library,
    LibMode,
    ModeSet,
    NoPreprocessing,
    ObjDir,
    PpxPreprocessing,
    PreprocessSpec,
    RunAction,
    StanzaDescriptor,
    SystemAction,
    Visibility,
    extensions_for_merlin,
    obj_dir_of_lib,
    resolve_mode,
)

__all__ = [
    # Directives
    "PpKind",
    "PpFlag",
    "SuffixOverride",
    "MerlinConfig",
    "PerModule",
    # Modules
    "Module",
    "ModuleKind",
    "ModuleTable",
    "ModuleConfig",
    "module_name",
    # Stanza
    "StanzaDescriptor",
    "LibMode",
    "Visibility",
    "ObjDir",
    "obj_dir_of_lib",
    "Library",
    "ModeSet",
    "CompileModes",
    "resolve_mode",
    "Dialect",
    "extensions_for_merlin",
    "INPUT_FILE",
    "Action",
    "RunAction",
    "ChdirAction",
    "SystemAction",
    "PreprocessSpec",
    "NoPreprocessing",
    "ActionPreprocessing",
    "PpxPreprocessing",
    "FutureSyntax",
]
