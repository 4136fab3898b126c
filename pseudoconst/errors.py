"""
pseudoconst/errors.py

Exceptions raised around the analysis core.

The core itself never fails on a well-formed dump; these cover the
driver's contact with the outside world.

    PseudoConstError (base)
    └── DumpLoadError   - cppcheckdata missing, or the dump is unreadable
"""

from __future__ import annotations

from typing import Optional


class PseudoConstError(Exception):
    """Base class for every error this package raises."""


class DumpLoadError(PseudoConstError):
    """A cppcheck dump file could not be loaded."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        base = super().__str__()
        return f"{self.path}: {base}" if self.path else base
