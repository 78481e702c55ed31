"""merlinconf-core: Editor configuration compiler.

This package provides:
- StanzaDescriptor: Raw description of one build unit
- Compiler: Elaborate StanzaDescriptor -> MerlinArtifact
- MerlinArtifact: Persisted, versioned output contract
- Renderers: structured directives and legacy ``.merlin`` text
- merge_artifacts / generic_dot_merlin: Multi-artifact merge
"""

from __future__ import annotations

__version__ = "0.1.0"

# Compiler and output models
from merlinconf_core.compiler import (
    BuildContext,
    Compiler,
    MerlinArtifact,
    SafeBuildContext,
    example_artifact,
)

# Error types
from merlinconf_core.errors import (
    ArtifactLoadError,
    ConfigurationError,
    MerlinError,
    NoConfigurationError,
)
from merlinconf_core.generate import artifact_path, generate_artifact
from merlinconf_core.lookup import ProvenanceIndex, find_module_config, source_key
from merlinconf_core.merge import MergedConfiguration, generic_dot_merlin, merge_artifacts
from merlinconf_core.persist import (
    FORMAT_TAG,
    FORMAT_VERSION,
    LoadError,
    LoadResult,
    load_file,
    load_or_raise,
    write_file,
)
from merlinconf_core.quoting import PosixQuoting, QuotingStrategy, WindowsQuoting, select_quoting
from merlinconf_core.render import dump, get, module_sexp, to_dot_merlin, to_sexp

# Schema models
from merlinconf_core.schemas import (
    Library,
    LibMode,
    MerlinConfig,
    Module,
    ModuleConfig,
    ModuleTable,
    ObjDir,
    PerModule,
    PpFlag,
    PpKind,
    StanzaDescriptor,
    SuffixOverride,
)
from merlinconf_core.settings import MerlinSettings, get_settings

__all__ = [
    "__version__",
    # Compiler
    "Compiler",
    "BuildContext",
    "SafeBuildContext",
    "MerlinArtifact",
    "example_artifact",
    "generate_artifact",
    "artifact_path",
    # Persistence
    "FORMAT_TAG",
    "FORMAT_VERSION",
    "LoadError",
    "LoadResult",
    "load_file",
    "load_or_raise",
    "write_file",
    # Rendering
    "to_sexp",
    "module_sexp",
    "get",
    "dump",
    "to_dot_merlin",
    "QuotingStrategy",
    "PosixQuoting",
    "WindowsQuoting",
    "select_quoting",
    # Lookup
    "source_key",
    "find_module_config",
    "ProvenanceIndex",
    # Merge
    "MergedConfiguration",
    "merge_artifacts",
    "generic_dot_merlin",
    # Errors
    "MerlinError",
    "ArtifactLoadError",
    "NoConfigurationError",
    "ConfigurationError",
    # Schemas
    "StanzaDescriptor",
    "Library",
    "LibMode",
    "ObjDir",
    "Module",
    "ModuleTable",
    "ModuleConfig",
    "MerlinConfig",
    "PerModule",
    "PpFlag",
    "PpKind",
    "SuffixOverride",
    # Settings
    "MerlinSettings",
    "get_settings",
]
