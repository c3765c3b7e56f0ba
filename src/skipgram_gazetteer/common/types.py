"""Shared type definitions for the gazetteer pipeline.

The aliases name the intermediate tables passed between pipeline stages so
signatures read the same way in every module.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Protocol, TypeAlias, runtime_checkable

# Entry -> identifiers attached to it
EntryUriMap: TypeAlias = Mapping[str, frozenset[str]]

# Entry -> generated variants
EntryVariantMap: TypeAlias = Mapping[str, frozenset[str]]

# Variant -> the single entry it resolves to
VariantEntryLookup: TypeAlias = Mapping[str, str]

# Finalized variants, longest first
Vocabulary: TypeAlias = Sequence[str]


@runtime_checkable
class TokenTreeLike(Protocol):
    """Protocol for token trees the index adapter can load.

    Implementations must tokenize keys by their configured boundary pattern,
    apply their case folding consistently, and tolerate concurrent ``insert``
    calls.
    """

    def insert(self, key: str) -> None:
        """Tokenize ``key`` and register it."""
        ...

    def size(self) -> int:
        """Return the number of nodes below the root."""
        ...

    def tokenize(self, text: str) -> list[str]:
        """Split ``text`` the way ``insert`` does."""
        ...

    def iter_keys(self) -> Iterator[str]:
        ...


__all__ = [
    "EntryUriMap",
    "EntryVariantMap",
    "TokenTreeLike",
    "VariantEntryLookup",
    "Vocabulary",
]
