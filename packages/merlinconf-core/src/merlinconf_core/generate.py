"""Artifact generation for a build unit.

Ties elaboration and persistence together: the unit's descriptor is
elaborated and the resulting artifact written under the unit's build
directory, unless generation is disabled in the settings.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from merlinconf_core.compiler.compiler import Compiler
from merlinconf_core.compiler.models import MerlinArtifact
from merlinconf_core.persist import write_file
from merlinconf_core.schemas import StanzaDescriptor
from merlinconf_core.settings import MerlinSettings, get_settings

logger = structlog.get_logger(__name__)


def artifact_path(build_dir: Path, ident: str, *, settings: MerlinSettings | None = None) -> Path:
    """Location of the artifact of unit ``ident`` defined in ``build_dir``.

    Example:
        >>> artifact_path(Path("_build/default/src"), "lib-foo")
        PosixPath('_build/default/src/.merlin-conf/lib-foo')
    """
    settings = settings or get_settings()
    return build_dir / settings.artifact_dir_name / ident


async def generate_artifact(
    compiler: Compiler,
    descriptor: StanzaDescriptor,
    *,
    dir: Path,
    more_src_dirs: Iterable[Path] = (),
    path: Path | None = None,
    settings: MerlinSettings | None = None,
) -> MerlinArtifact | None:
    """Elaborate ``descriptor`` and persist the result.

    Args:
        compiler: Compiler bound to the build context.
        descriptor: Build unit to configure.
        dir: Build directory the unit is defined in.
        more_src_dirs: Extra source directories supplied by the caller.
        path: Artifact file. Defaults to ``artifact_path(dir, ident)``.
        settings: Settings to honor. Defaults to ``get_settings()``.

    Returns:
        The written artifact, or None when generation is disabled.
    """
    settings = settings or get_settings()
    if not settings.enabled:
        logger.debug("generation_disabled", ident=descriptor.ident)
        return None

    artifact = await compiler.process(descriptor, dir=dir, more_src_dirs=more_src_dirs)
    target = path or artifact_path(dir, descriptor.ident, settings=settings)
    write_file(target, artifact)
    logger.info("artifact_generated", ident=descriptor.ident, path=str(target))
    return artifact
