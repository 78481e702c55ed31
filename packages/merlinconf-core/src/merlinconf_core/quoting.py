"""Shell quoting strategies for command lines and legacy flags.

The strategy is chosen once from the target platform and passed to the
code that encodes commands or renders ``.merlin`` documents.

On Windows the legacy consumer unescapes backslashes everywhere except
inside single quotes, and Windows quoting uses double quotes, so
backslashes are escaped before quoting.
"""

from __future__ import annotations

import os
import re
import shlex
import sys
from pathlib import PurePath
from typing import Protocol

_UNSAFE = re.compile(r"[^\w@%+=:,./-]", re.ASCII)


def serialize_path(path: PurePath | str) -> str:
    """Absolute, normalized form of ``path`` as the editor expects it."""
    return os.path.abspath(path)


def needs_quoting(token: str) -> bool:
    """Return True if ``token`` cannot be passed to a shell as is."""
    return token == "" or _UNSAFE.search(token) is not None


class QuotingStrategy(Protocol):
    """Quote tokens for a given platform."""

    def quote(self, token: str) -> str:
        """Quote ``token`` for a command line, only if needed."""
        ...

    def quote_for_dot_merlin(self, token: str) -> str:
        """Quote ``token`` for a ``.merlin`` FLG line, only if needed."""
        ...


class PosixQuoting:
    """Single-quote quoting as done by POSIX shells."""

    def quote(self, token: str) -> str:
        return shlex.quote(token) if needs_quoting(token) else token

    def quote_for_dot_merlin(self, token: str) -> str:
        return self.quote(token)


class WindowsQuoting:
    """Double-quote quoting, with backslashes escaped for ``.merlin``."""

    def quote(self, token: str) -> str:
        if not needs_quoting(token):
            return token
        return '"' + token.replace('"', '\\"') + '"'

    def quote_for_dot_merlin(self, token: str) -> str:
        return self.quote(token.replace("\\", "\\\\"))


def select_quoting(*, windows: bool | None = None) -> QuotingStrategy:
    """Pick the quoting strategy for the target platform.

    Args:
        windows: Force the Windows strategy on or off. Defaults to the
            platform this process runs on.
    """
    if windows is None:
        windows = sys.platform == "win32"
    return WindowsQuoting() if windows else PosixQuoting()
