"""Compiler module for merlinconf.

This module exports the elaboration step and its output model:
- Compiler: Elaborates StanzaDescriptor -> MerlinArtifact
- BuildContext: Protocol of the build-graph queries it consumes
- SafeBuildContext: Failure-absorbing adapter over a BuildContext
- MerlinArtifact: Output contract model
- pp_flags / encode_command: Preprocessing directive resolution
"""

from __future__ import annotations

from merlinconf_core.compiler.compiler import MELANGE_LIBRARY, Compiler
from merlinconf_core.compiler.context import BuildContext, SafeBuildContext
from merlinconf_core.compiler.models import MerlinArtifact, example_artifact
from merlinconf_core.compiler.preprocess import encode_command, pp_flags

__all__: list[str] = [
    "Compiler",
    "MELANGE_LIBRARY",
    "BuildContext",
    "SafeBuildContext",
    "MerlinArtifact",
    "example_artifact",
    "encode_command",
    "pp_flags",
]
