"""Invert entry -> variants into a bijective variant -> entry lookup."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Optional, Set

from skipgram_gazetteer.common.types import EntryVariantMap, VariantEntryLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResult:
    lookup: VariantEntryLookup
    ambiguous: int = 0


def find_contested_variants(entry_variants: EntryVariantMap) -> Set[str]:
    """Return the variants produced by more than one distinct entry."""

    owners: Dict[str, Set[str]] = defaultdict(set)
    for entry, variants in entry_variants.items():
        for variant in variants:
            owners[variant].add(entry)
    return {variant for variant, sources in owners.items() if len(sources) > 1}


def resolve_variants(
    entry_variants: EntryVariantMap,
    entries: Optional[Iterable[str]] = None,
) -> LookupResult:
    """Build the variant -> entry table.

    Variants shared by several entries are dropped. Every entry is then mapped
    to itself, overriding whatever the inversion decided for that string.
    """

    contested = find_contested_variants(entry_variants)

    lookup: Dict[str, str] = {}
    for entry, variants in entry_variants.items():
        for variant in sorted(variants):
            if variant not in contested:
                lookup[variant] = entry

    logger.info(f"Ignoring {len(contested)} duplicate skip-grams!")

    # The literal entry text always resolves to the entry itself.
    for entry in entry_variants.keys() if entries is None else entries:
        lookup[entry] = entry

    return LookupResult(lookup=MappingProxyType(lookup), ambiguous=len(contested))


__all__ = ["LookupResult", "find_contested_variants", "resolve_variants"]
