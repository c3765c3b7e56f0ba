"""Gazetteer models built from entry sources.

Two shapes share the same upstream stages:

* :class:`SkipGramGazetteerModel` – the flat shape: entry map, variant lookup
  and the ordered vocabulary.
* :class:`TreeGazetteerModel` – the flat shape plus a token tree loaded with
  the vocabulary, longest variants first.

Models are built in one blocking call and are read-only afterwards, so they
can be shared between threads without locking. A failing build raises and
leaves nothing behind.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import marisa_trie

from skipgram_gazetteer.common.config import GazetteerConfig
from skipgram_gazetteer.common.types import (
    EntryUriMap,
    EntryVariantMap,
    VariantEntryLookup,
    Vocabulary,
)
from skipgram_gazetteer.entries import load_entry_map
from skipgram_gazetteer.index import IndexResult, build_token_tree
from skipgram_gazetteer.lookup import resolve_variants
from skipgram_gazetteer.sources import resolve_locations
from skipgram_gazetteer.tree import TokenTree
from skipgram_gazetteer.variants import count_variants, generate_variant_map
from skipgram_gazetteer.vocabulary import finalize_vocabulary

LOGGER = logging.getLogger(__name__)

_EMPTY: frozenset[str] = frozenset()


@dataclass(frozen=True)
class BuildStats:
    sources: int
    entries: int
    duplicates: int
    variants: int
    ambiguous: int
    vocabulary: int
    elapsed_ms: float
    nodes: Optional[int] = None
    stoplisted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SkipGramGazetteerModel:
    """Flat gazetteer: entries, their skip-gram variants and the variant lookup."""

    def __init__(
        self,
        *,
        config: GazetteerConfig,
        entry_uri_map: EntryUriMap,
        entry_variants: EntryVariantMap,
        variant_entry_lookup: VariantEntryLookup,
        vocabulary: Vocabulary,
        stats: BuildStats,
    ) -> None:
        self.config = config
        self._entry_uri_map = MappingProxyType(dict(entry_uri_map))
        self._entry_variants = MappingProxyType(dict(entry_variants))
        self._lookup = MappingProxyType(dict(variant_entry_lookup))
        self._vocabulary: Tuple[str, ...] = tuple(vocabulary)
        self._trie = marisa_trie.Trie(self._vocabulary)
        self.stats = stats

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(
        cls,
        locations: Iterable[str | Path],
        config: Optional[GazetteerConfig] = None,
        *,
        cache_dir: Optional[Path] = None,
    ):
        """Run the full pipeline over ``locations`` and return the finished model."""

        config = config or GazetteerConfig()
        start = time.perf_counter()

        sources = resolve_locations(locations, cache_dir=cache_dir)
        loaded = load_entry_map(
            sources, lowercase=config.use_lowercase, language=config.language
        )
        entry_variants = generate_variant_map(
            loaded.entries, config.variant_options(), max_workers=config.max_workers
        )
        resolved = resolve_variants(entry_variants, loaded.entries)
        vocabulary = finalize_vocabulary(resolved.lookup, config.min_variant_length)

        LOGGER.info(
            f"Finished loading {len(vocabulary)} skip-grams from {len(loaded.entries)} entries "
            f"in {(time.perf_counter() - start) * 1000:.0f}ms."
        )

        extra = cls._index(vocabulary, config)
        index: Optional[IndexResult] = extra.get("index")
        stats = BuildStats(
            sources=len(sources),
            entries=len(loaded.entries),
            duplicates=loaded.duplicates,
            variants=count_variants(entry_variants),
            ambiguous=resolved.ambiguous,
            vocabulary=len(vocabulary),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 3),
            nodes=index.tree.size() if index is not None else None,
            stoplisted=index.skipped if index is not None else 0,
        )
        return cls(
            config=config,
            entry_uri_map=loaded.entries,
            entry_variants=entry_variants,
            variant_entry_lookup=resolved.lookup,
            vocabulary=vocabulary,
            stats=stats,
            **{key: value for key, value in extra.items() if key != "index"},
        )

    @classmethod
    def _index(cls, vocabulary: Vocabulary, config: GazetteerConfig) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def identifiers_for_variant(self, variant: str) -> frozenset[str]:
        entry = self._lookup.get(variant)
        if entry is None:
            return _EMPTY
        return self._entry_uri_map.get(entry, _EMPTY)

    def entry_for_variant(self, variant: str) -> Optional[str]:
        return self._lookup.get(variant)

    def variants_for_entry(self, entry: str) -> frozenset[str]:
        return self._entry_variants.get(entry, _EMPTY)

    def all_variants_ordered(self) -> Iterator[str]:
        """Iterate the vocabulary, longest first. Each call starts over."""
        return iter(self._vocabulary)

    def variants_with_prefix(self, prefix: str) -> List[str]:
        """Vocabulary members starting with ``prefix``, longest first."""
        return sorted(self._trie.keys(prefix), key=lambda key: (-len(key), key))

    def __contains__(self, variant: object) -> bool:
        return variant in self._lookup

    def __len__(self) -> int:
        return len(self._vocabulary)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def entry_uri_map(self) -> EntryUriMap:
        return self._entry_uri_map

    @property
    def variant_entry_lookup(self) -> VariantEntryLookup:
        return self._lookup

    @property
    def entry_variants(self) -> EntryVariantMap:
        return self._entry_variants

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        return self._vocabulary


class TreeGazetteerModel(SkipGramGazetteerModel):
    """Flat gazetteer plus a token tree of the vocabulary."""

    def __init__(self, *, tree: TokenTree, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._tree = tree

    @classmethod
    def _index(cls, vocabulary: Vocabulary, config: GazetteerConfig) -> Dict[str, Any]:
        index = build_token_tree(
            vocabulary,
            stoplist=config.stoplist,
            case_fold=config.use_lowercase,
            token_boundary=config.token_boundary_pattern,
            max_workers=config.max_workers,
            show_progress=config.show_progress,
        )
        return {"tree": index.tree, "index": index}

    @property
    def tree(self) -> TokenTree:
        return self._tree


__all__ = ["BuildStats", "SkipGramGazetteerModel", "TreeGazetteerModel"]
