"""Versioned persistence of MerlinArtifact files.

An artifact file is a one-line header naming the format and its version,
followed by the JSON payload of the artifact:

    merlin-conf-v4
    {"config": {...}, "per_module_config": {...}, "pp_config": {...}}

Readers accept exactly their own header. Anything else, including a file
written by an older or newer version, is reported as a LoadError value
telling the user to rebuild; there is no lenient decoding across
versions.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from merlinconf_core.compiler.models import MerlinArtifact
from merlinconf_core.errors import ArtifactLoadError

logger = structlog.get_logger(__name__)

FORMAT_TAG = "merlin-conf"
FORMAT_VERSION = 4

VERSION_MISMATCH_MESSAGE = (
    "The current Merlin configuration has been generated by another, "
    "incompatible, version of merlinconf. Please rebuild the project. "
    "(Using the same version of merlinconf as the one serving the editor.)"
)


def header(*, tag: str = FORMAT_TAG, version: int = FORMAT_VERSION) -> bytes:
    """Header line written in front of every payload."""
    return f"{tag}-v{version}\n".encode("ascii")


class LoadError(BaseModel):
    """Recoverable failure to load an artifact file.

    Attributes:
        message: User-facing message.
        path: File that failed to load, if known.
        unreadable: True if the file could not be read at all.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(..., description="User-facing message")
    path: str | None = Field(default=None, description="Artifact path")
    unreadable: bool = Field(default=False, description="File could not be read")

    def to_exception(self) -> ArtifactLoadError:
        """Turn this failure into an exception for callers that raise."""
        return ArtifactLoadError(self.message, path=self.path, unreadable=self.unreadable)


LoadResult = Union[MerlinArtifact, LoadError]
"""Outcome of ``load_file``: the artifact or why it could not be used."""


def to_bytes(artifact: MerlinArtifact) -> bytes:
    """Serialize ``artifact`` with the current header."""
    return header() + artifact.model_dump_json().encode("utf-8")


def from_bytes(data: bytes) -> MerlinArtifact | None:
    """Deserialize ``data``; None if the header or payload does not match.

    Example:
        >>> from_bytes(to_bytes(example_artifact())) == example_artifact()
        True
        >>> from_bytes(b"merlin-conf-v3\\n{}") is None
        True
    """
    expected = header()
    if not data.startswith(expected):
        logger.debug("artifact_header_mismatch", found=data[: len(expected)], expected=expected)
        return None
    try:
        return MerlinArtifact.model_validate_json(data[len(expected) :])
    except ValidationError as e:
        logger.debug("artifact_payload_invalid", errors=e.error_count())
        return None


def write_file(path: Path, artifact: MerlinArtifact) -> None:
    """Write ``artifact`` to ``path``, replacing any previous file atomically.

    Args:
        path: Destination file. Parent directories are created.
        artifact: Artifact to persist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(to_bytes(artifact))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    logger.debug("artifact_written", path=str(path))


def load_file(path: Path) -> LoadResult:
    """Load an artifact file.

    Args:
        path: Artifact file.

    Returns:
        The artifact, or a LoadError when the file cannot be read or was
        written by an incompatible version.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.debug("artifact_read_failed", path=str(path), error=str(e))
        return LoadError(
            message=f"Unable to read {path}: {e.strerror or e}",
            path=str(path),
            unreadable=True,
        )

    artifact = from_bytes(data)
    if artifact is None:
        return LoadError(message=VERSION_MISMATCH_MESSAGE, path=str(path))
    return artifact


def load_or_raise(path: Path) -> MerlinArtifact:
    """Load an artifact file, raising on failure.

    Raises:
        ArtifactLoadError: If the file cannot be used.
    """
    result = load_file(path)
    if isinstance(result, LoadError):
        raise result.to_exception()
    return result
