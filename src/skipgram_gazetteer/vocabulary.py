from __future__ import annotations

from typing import Iterable, Tuple

from skipgram_gazetteer.common.types import Vocabulary


def finalize_vocabulary(lookup: Iterable[str], min_length: float = 0) -> Tuple[str, ...]:
    """Filter and order the lookup keys for indexing.

    Keeps non-empty keys with ``len(key) >= min_length`` and sorts them longest
    first. ``sorted`` is stable, so equally long keys keep the table's order.
    """

    kept = [variant for variant in lookup if variant and len(variant) >= min_length]
    return tuple(sorted(kept, key=len, reverse=True))


def is_length_ordered(vocabulary: Vocabulary) -> bool:
    return all(len(a) >= len(b) for a, b in zip(vocabulary, vocabulary[1:]))


__all__ = ["finalize_vocabulary", "is_length_ordered"]
