"""Source file lookup in an artifact's per-module index.

Index keys are source paths with every extension removed and the file name
case-folded, so ``src/Foo.ml``, ``src/foo.mli`` and ``src/foo.pp.ml`` all
find the entry stored for ``src/foo``.

Generated files (a copied or preprocessed source) are not keys themselves;
they are resolved by following their provenance chain back to an origin
that is. The chain is bounded and cycle-safe.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import PurePath, PurePosixPath
from typing import TYPE_CHECKING, TypeVar

import structlog

from merlinconf_core.settings import DEFAULT_MAX_PROVENANCE_DEPTH

if TYPE_CHECKING:
    from merlinconf_core.compiler.models import MerlinArtifact
    from merlinconf_core.schemas import ModuleConfig

logger = structlog.get_logger(__name__)

R = TypeVar("R")


def remove_extension(path: PurePath | str) -> PurePosixPath:
    """Strip everything after the first dot of the file name.

    Example:
        >>> remove_extension("src/foo.cppo.ml")
        PurePosixPath('src/foo')
    """
    p = PurePosixPath(PurePath(path).as_posix())
    basename = p.name.split(".", 1)[0]
    return p.with_name(basename) if basename else p


def source_key(path: PurePath | str) -> str:
    """Index key of a source file: extension-stripped, file name case-folded.

    Example:
        >>> source_key("src/Foo.ml")
        'src/foo'
    """
    stem = remove_extension(path)
    return stem.with_name(stem.name.casefold()).as_posix()


class ProvenanceIndex:
    """Record of which generated file was derived from which file.

    Example:
        >>> index = ProvenanceIndex({"src/foo.pp.ml": "src/foo.ml"})
        >>> index.origin_of("src/foo.pp.ml")
        'src/foo.ml'
    """

    def __init__(self, origins: Mapping[str, str] | None = None) -> None:
        self._origins: dict[str, str] = {}
        for derived, origin in (origins or {}).items():
            self.add(derived, origin)

    def add(self, derived: PurePath | str, origin: PurePath | str) -> None:
        """Record that ``derived`` was produced from ``origin``."""
        self._origins[PurePath(derived).as_posix()] = PurePath(origin).as_posix()

    def origin_of(self, path: PurePath | str) -> str | None:
        """File ``path`` was derived from, if recorded."""
        return self._origins.get(PurePath(path).as_posix())

    def follow_while(
        self,
        path: PurePath | str,
        f: Callable[[str], R | None],
        *,
        max_depth: int = DEFAULT_MAX_PROVENANCE_DEPTH,
    ) -> R | None:
        """Walk the origins of ``path`` until ``f`` returns a value.

        ``path`` itself is not tried. Returns None when the chain ends,
        revisits a file, or exceeds ``max_depth`` hops.
        """
        current = PurePath(path).as_posix()
        visited = {current}
        for _ in range(max_depth):
            origin = self.origin_of(current)
            if origin is None:
                return None
            if origin in visited:
                logger.debug("provenance_cycle", path=str(path), at=origin)
                return None
            visited.add(origin)
            result = f(origin)
            if result is not None:
                return result
            current = origin
        logger.debug("provenance_chain_exhausted", path=str(path), max_depth=max_depth)
        return None


def find_module_config(
    artifact: MerlinArtifact,
    file: PurePath | str,
    *,
    provenance: ProvenanceIndex | None = None,
    max_depth: int = DEFAULT_MAX_PROVENANCE_DEPTH,
) -> ModuleConfig | None:
    """Per-module configuration of the module owning ``file``.

    Args:
        artifact: Artifact to search.
        file: Source file, with any extension and any case.
        provenance: Origins of generated files, tried when ``file`` is not
            itself in the index.
        max_depth: Bound on the provenance chain.

    Returns:
        The module configuration, or None if not found.
    """

    def find(candidate: PurePath | str) -> ModuleConfig | None:
        return artifact.per_module_config.get(source_key(candidate))

    found = find(file)
    if found is not None or provenance is None:
        return found
    return provenance.follow_while(file, find, max_depth=max_depth)
