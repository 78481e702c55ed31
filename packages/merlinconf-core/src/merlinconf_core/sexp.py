"""S-expression values and printers.

The structured configuration handed to the editor is a list of directives,
each one an S-expression such as ``(B /path/to/objs)``. This module holds the
value type and two printers:

- ``to_string``/``pretty``: human-readable form with atom quoting
- ``to_canonical``: canonical (length-prefixed) form used on the wire
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Union

Sexp = Union[str, Sequence["Sexp"]]
"""An atom (``str``) or a list of S-expressions."""

_NEEDS_QUOTING = re.compile(r'[\s()";\\]|[^\x20-\x7e]')

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def atom_needs_quoting(atom: str) -> bool:
    """Return True if ``atom`` must be quoted to read back as one atom."""
    return atom == "" or _NEEDS_QUOTING.search(atom) is not None


def quote_atom(atom: str) -> str:
    """Quote ``atom`` if needed, escaping quotes and backslashes.

    Example:
        >>> quote_atom("-open")
        '-open'
        >>> quote_atom("ml mli")
        '"ml mli"'
    """
    if not atom_needs_quoting(atom):
        return atom
    escaped = "".join(_ESCAPES.get(c, c) for c in atom)
    return f'"{escaped}"'


def to_string(sexp: Sexp) -> str:
    """Render ``sexp`` on a single line."""
    if isinstance(sexp, str):
        return quote_atom(sexp)
    return "(" + " ".join(to_string(item) for item in sexp) + ")"


def pretty(sexp: Sexp) -> str:
    """Render a list of directives with one directive per line.

    Example:
        >>> print(pretty([["EXCLUDE_QUERY_DIR"], ["B", "/tmp/x"]]))
        ((EXCLUDE_QUERY_DIR)
         (B /tmp/x))
    """
    if isinstance(sexp, str) or not sexp:
        return to_string(sexp)
    return "(" + "\n ".join(to_string(item) for item in sexp) + ")"


def to_canonical(sexp: Sexp) -> bytes:
    """Render ``sexp`` in canonical form (``<len>:<bytes>`` atoms)."""
    if isinstance(sexp, str):
        raw = sexp.encode("utf-8")
        return str(len(raw)).encode("ascii") + b":" + raw
    return b"(" + b"".join(to_canonical(item) for item in sexp) + b")"
