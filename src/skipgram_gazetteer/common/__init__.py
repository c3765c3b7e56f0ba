"""Shared infrastructure for the gazetteer pipeline."""

from __future__ import annotations

from .errors import (
    CacheDirectoryError,
    EntryFormatError,
    GazetteerError,
    IdentifierError,
    SourceError,
)
from .types import (
    EntryUriMap,
    EntryVariantMap,
    TokenTreeLike,
    VariantEntryLookup,
    Vocabulary,
)

__all__ = [
    "CacheDirectoryError",
    "EntryFormatError",
    "EntryUriMap",
    "EntryVariantMap",
    "GazetteerError",
    "IdentifierError",
    "SourceError",
    "TokenTreeLike",
    "VariantEntryLookup",
    "Vocabulary",
]
