"""Exception hierarchy for gazetteer construction.

Everything raised here is fatal: a build that hits one of these errors is
abandoned and no model is returned. Recoverable conditions (duplicate entries,
ambiguous variants) are logged instead of raised.
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence


class GazetteerError(Exception):
    """Base class for all gazetteer construction failures."""


class SourceError(GazetteerError, OSError):
    """A source location could not be fetched, unpacked or read."""

    def __init__(self, message: str, *, location: str | Path | None = None) -> None:
        super().__init__(message)
        self.location = str(location) if location is not None else None


class CacheDirectoryError(SourceError):
    """None of the cache directory candidates is readable and writable."""

    def __init__(self, candidates: Sequence[Path]) -> None:
        self.candidates = tuple(candidates)
        denied = "\n".join(f"Access denied: '{path}'" for path in self.candidates)
        super().__init__(
            "Could not access output folders!\n"
            "Please download the entry files yourself and put them in a readable directory.\n"
            f"{denied}"
        )


class EntryFormatError(GazetteerError, ValueError):
    """A source line does not have the ``<name><TAB><identifiers>`` shape."""

    def __init__(
        self,
        message: str,
        *,
        source: str | Path | None = None,
        line_no: int | None = None,
    ) -> None:
        self.source = str(source) if source is not None else None
        self.line_no = line_no
        where = ""
        if self.source is not None:
            where = f" ({self.source}"
            where += f", line {line_no})" if line_no is not None else ")"
        super().__init__(f"{message}{where}")


class IdentifierError(EntryFormatError):
    """An identifier token is not a well formed URI reference."""

    def __init__(
        self,
        token: str,
        reason: str,
        *,
        source: str | Path | None = None,
        line_no: int | None = None,
    ) -> None:
        self.token = token
        super().__init__(
            f"Malformed identifier {token!r}: {reason}", source=source, line_no=line_no
        )


__all__ = [
    "CacheDirectoryError",
    "EntryFormatError",
    "GazetteerError",
    "IdentifierError",
    "SourceError",
]
