"""Custom exception hierarchy for merlinconf-core.

This module defines the exception classes used throughout merlinconf:
- MerlinError: Base exception for all merlinconf errors
- ArtifactLoadError: Raised when a persisted artifact cannot be used
- NoConfigurationError: Raised when a merge is asked for no artifacts
- ConfigurationError: Raised when settings are invalid

Build-graph failures (unresolved libraries, missing drivers) are NOT
errors: the elaboration step absorbs them, see
``merlinconf_core.compiler.context``.

User-facing messages are safe to display; technical details are logged
internally via structlog.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class MerlinError(Exception):
    """Base exception for merlinconf.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging only.

    Example:
        >>> raise MerlinError(
        ...     "Configuration could not be loaded",
        ...     internal_details="header b'merlin-conf-v3' != b'merlin-conf-v4'",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "merlin_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ArtifactLoadError(MerlinError):
    """Raised when a persisted artifact cannot be loaded.

    Attributes:
        path: Path of the artifact file, if known.
        unreadable: True if the file could not be read at all, False if it
            was written by an incompatible version.
    """

    def __init__(
        self,
        user_message: str,
        *,
        path: str | None = None,
        unreadable: bool = False,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.path = path
        self.unreadable = unreadable


class NoConfigurationError(MerlinError):
    """Raised when a merge is requested over an empty list of artifacts."""

    def __init__(self) -> None:
        super().__init__("No merlin configuration found.")


class ConfigurationError(MerlinError):
    """Raised when merlinconf settings are invalid.

    Attributes:
        field_path: Name of the offending setting (if known).
    """

    def __init__(
        self,
        user_message: str,
        *,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        full_message = f"{user_message} (field '{field_path}')" if field_path else user_message
        super().__init__(full_message, internal_details=internal_details)
        self.field_path = field_path
