"""Skip-gram variant generation for multi-word entries.

An entry such as ``"Quercus robur subsp petraea"`` is generalized into the
order-preserving word subsets that still point at it (``"Quercus robur
petraea"``, ``"robur subsp petraea"``, ...), optionally with the first word
abbreviated (``"Q. robur subsp petraea"``).

Scaling note
------------
With ``all_skips`` enabled every subset size from 2 to ``n - 1`` is
enumerated, i.e. ``2**n - n - 2`` strings for an ``n``-word entry. Long
entries therefore blow up quickly. Set ``max_combinations`` to bound the
enumeration per entry, plain and abbreviated forms together; the bound is
logged whenever it applies and never drops the ``n - 1`` size.
"""
from __future__ import annotations

import logging
import math
import re
from functools import partial
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from skipgram_gazetteer.common.concurrency import maybe_parallel_map
from skipgram_gazetteer.common.types import EntryVariantMap

LOGGER = logging.getLogger(__name__)

_WORD_SPLIT_RE = re.compile(r"\s+")
_WORD_HYPHEN_SPLIT_RE = re.compile(r"[\s\-]+")


class VariantOptions(BaseModel):
    """Generation switches, passed explicitly to every generation call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    split_hyphen: bool = True
    all_skips: bool = False
    min_word_count: int = Field(default=3, ge=1)
    add_abbreviated: bool = False
    max_combinations: Optional[int] = Field(default=None, ge=1)


def split_words(text: str, *, split_hyphen: bool = True) -> List[str]:
    pattern = _WORD_HYPHEN_SPLIT_RE if split_hyphen else _WORD_SPLIT_RE
    return [word for word in pattern.split(text) if word]


def index_combinations(n: int, k: int) -> Iterator[Tuple[int, ...]]:
    """Yield every strictly increasing ``k``-tuple of indices from ``range(n)``.

    Tuples come in lexicographic order and there are exactly ``math.comb(n, k)``
    of them. ``k == 0`` yields the empty tuple once; ``k > n`` yields nothing.
    """

    if n < 0 or k < 0:
        raise ValueError(f"n and k must be non-negative, got n={n}, k={k}")
    if k > n:
        return
    indices = list(range(k))
    yield tuple(indices)
    while True:
        # Rightmost position that can still be advanced.
        for i in reversed(range(k)):
            if indices[i] != i + n - k:
                break
        else:
            return
        indices[i] += 1
        for j in range(i + 1, k):
            indices[j] = indices[j - 1] + 1
        yield tuple(indices)


def skip_gram_sizes(word_count: int, options: VariantOptions) -> List[int]:
    """Subset sizes to enumerate for an entry of ``word_count`` words."""

    if options.all_skips and word_count > 3:
        return list(range(2, word_count))
    return [word_count - 1]


def _bounded_sizes(
    entry: str, word_count: int, sizes: List[int], cap: int, passes: int = 1
) -> List[int]:
    """Largest sizes first while ``passes`` enumerations of each still fit in ``cap``.

    The ``n - 1`` size is always kept, so ``cap`` is exceeded only when that
    size alone is larger than it.
    """

    total = passes * sum(math.comb(word_count, k) for k in sizes)
    if total <= cap:
        return sizes

    chosen: List[int] = []
    budget = cap
    for k in sorted(sizes, reverse=True):
        count = passes * math.comb(word_count, k)
        if k != word_count - 1 and count > budget:
            break
        chosen.append(k)
        budget -= count
    LOGGER.warning(
        f"Capped skip-gram enumeration for '{entry}': "
        f"{passes * sum(math.comb(word_count, k) for k in chosen)} of {total} combinations "
        f"(sizes {sorted(chosen)})",
        extra={"entry": entry, "cap": cap},
    )
    return chosen


def _enumerate(words: List[str], sizes: Iterable[int]) -> Set[str]:
    word_count = len(words)
    skip_grams: Set[str] = set()
    for k in sizes:
        for combination in index_combinations(word_count, k):
            skip_grams.add(" ".join(words[index] for index in combination))
    return skip_grams


def generate_skip_grams(entry: str, options: VariantOptions) -> Set[str]:
    """Return the word-subset variants of ``entry``.

    Entries with fewer than ``options.min_word_count`` words are returned
    unchanged as a singleton set.
    """

    words = split_words(entry, split_hyphen=options.split_hyphen)
    word_count = len(words)
    if word_count < options.min_word_count:
        return {entry}

    sizes = skip_gram_sizes(word_count, options)
    if options.max_combinations is not None:
        sizes = _bounded_sizes(entry, word_count, sizes, options.max_combinations)
    return _enumerate(words, sizes)


def abbreviate_entry(entry: str, *, split_hyphen: bool = True) -> Optional[str]:
    """Replace the first word by its initial and a period, e.g. ``"Q. robur"``."""

    words = split_words(entry, split_hyphen=split_hyphen)
    if len(words) < 2:
        return None
    words[0] = words[0][0] + "."
    return " ".join(words)


def generate_variants(entry: str, options: VariantOptions) -> Set[str]:
    """Skip-grams of ``entry`` plus, when enabled, its abbreviated form and that form's skip-grams.

    Both enumerations share one ``max_combinations`` budget.
    """

    words = split_words(entry, split_hyphen=options.split_hyphen)
    abbreviated = None
    if options.add_abbreviated and len(words) > 1:
        abbreviated = abbreviate_entry(entry, split_hyphen=options.split_hyphen)

    word_count = len(words)
    if word_count < options.min_word_count:
        variants = {entry}
        if abbreviated is not None:
            variants.add(abbreviated)
        return variants

    # The abbreviated form has the same words apart from the first.
    recurse = abbreviated is not None and word_count > 2
    sizes = skip_gram_sizes(word_count, options)
    if options.max_combinations is not None:
        sizes = _bounded_sizes(
            entry, word_count, sizes, options.max_combinations, passes=2 if recurse else 1
        )

    variants = _enumerate(words, sizes)
    if abbreviated is not None:
        variants.add(abbreviated)
        if recurse:
            abbreviated_words = split_words(abbreviated, split_hyphen=options.split_hyphen)
            variants.update(_enumerate(abbreviated_words, sizes))
    return variants


def _frozen_variants(entry: str, options: VariantOptions) -> frozenset[str]:
    return frozenset(generate_variants(entry, options))


def generate_variant_map(
    entries: Iterable[str],
    options: VariantOptions,
    *,
    max_workers: Optional[int] = None,
    parallel_threshold: Optional[int] = None,
) -> Dict[str, frozenset[str]]:
    """Generate variants for every entry, keyed in input order."""

    keys = list(entries)
    results = maybe_parallel_map(
        keys,
        partial(_frozen_variants, options=options),
        max_workers=max_workers,
        parallel_threshold=parallel_threshold,
        executor="process",
    )
    return dict(zip(keys, results))


def count_variants(entry_variants: EntryVariantMap) -> int:
    return sum(len(variants) for variants in entry_variants.values())


__all__ = [
    "VariantOptions",
    "abbreviate_entry",
    "count_variants",
    "generate_skip_grams",
    "generate_variant_map",
    "generate_variants",
    "index_combinations",
    "skip_gram_sizes",
    "split_words",
]
