"""merlinconf-cli: Command-line interface for merlinconf.

Inspect persisted editor configuration artifacts and merge them into a
legacy ``.merlin`` document.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
