"""Runtime settings for merlinconf.

Settings are read from environment variables with the ``MERLINCONF_``
prefix (or a ``.env`` file in the working directory).

Example:
    $ MERLINCONF_LOG_LEVEL=DEBUG merlinconf dot-merlin _build/default/.merlin-conf/*
"""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from merlinconf_core.errors import ConfigurationError

DEFAULT_MAX_PROVENANCE_DEPTH = 32
"""Maximum number of rename hops followed to find a generated file's origin."""


class MerlinSettings(BaseSettings):
    """Settings for artifact generation and rendering.

    Attributes:
        enabled: Generate editor artifacts at all.
        log_level: Minimum log level.
        log_json: Render logs as JSON instead of console output.
        windows_quoting: Escape backslashes before quoting legacy flags.
            Defaults to True on Windows.
        max_provenance_depth: Bound on the rename chain followed when looking
            up a generated file.
        artifact_dir_name: Directory (relative to a unit's build directory)
            holding its persisted artifacts.
    """

    model_config = SettingsConfigDict(
        env_prefix="MERLINCONF_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Generate editor artifacts")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Minimum log level",
    )
    log_json: bool = Field(default=False, description="Render logs as JSON")
    windows_quoting: bool = Field(
        default_factory=lambda: sys.platform == "win32",
        description="Escape backslashes before quoting legacy flags",
    )
    max_provenance_depth: int = Field(
        default=DEFAULT_MAX_PROVENANCE_DEPTH,
        ge=1,
        le=1024,
        description="Bound on the provenance chain length",
    )
    artifact_dir_name: str = Field(
        default=".merlin-conf",
        min_length=1,
        description="Artifact directory name",
    )


@lru_cache(maxsize=1)
def get_settings() -> MerlinSettings:
    """Load settings once per process.

    Raises:
        ConfigurationError: If an environment variable holds an invalid value.
    """
    try:
        return MerlinSettings()
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(x) for x in first["loc"])
        raise ConfigurationError(
            f"Invalid merlinconf setting: {first['msg']}",
            field_path=field,
            internal_details=str(e),
        ) from e
