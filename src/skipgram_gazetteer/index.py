"""Load a finalized vocabulary into a token tree."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Optional, Sequence

from tqdm import tqdm

from skipgram_gazetteer.common.concurrency import maybe_parallel_map
from skipgram_gazetteer.tree import TokenTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexResult:
    tree: TokenTree
    inserted: int
    skipped: int


def partition_by_first_token(tree: TokenTree, vocabulary: Sequence[str]) -> List[List[str]]:
    """Group variants by their first token, keeping vocabulary order in each group.

    Two groups never share a subtree below the root, so they can be inserted by
    different workers without touching the same nodes.
    """

    groups: Dict[str, List[str]] = {}
    for variant in vocabulary:
        tokens = tree.tokenize(variant)
        groups.setdefault(tokens[0] if tokens else "", []).append(variant)
    return list(groups.values())


def build_token_tree(
    vocabulary: Sequence[str],
    *,
    stoplist: AbstractSet[str] = frozenset(),
    case_fold: bool = False,
    token_boundary: str = r"\s+",
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> IndexResult:
    """Insert every non-stoplisted variant into a new :class:`TokenTree`."""

    logger.info("Building tree..")
    start = time.perf_counter()
    tree = TokenTree(token_boundary, case_fold)

    accepted: List[str] = []
    skipped = 0
    for variant in vocabulary:
        if variant.lower() in stoplist:
            skipped += 1
            logger.debug("Skipping stoplisted skip-gram", extra={"variant": variant})
            continue
        accepted.append(variant)

    partitions = partition_by_first_token(tree, accepted)

    with tqdm(
        total=len(accepted), desc="Building tree", unit="skip-gram", disable=not show_progress
    ) as progress:

        def insert_partition(partition: List[str]) -> int:
            for variant in partition:
                tree.insert(variant)
            progress.update(len(partition))
            return len(partition)

        inserted = sum(
            maybe_parallel_map(
                partitions,
                insert_partition,
                max_workers=max_workers,
                parallel_threshold=2,
                executor="thread",
            )
        )

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Finished building tree with {tree.size()} nodes from {inserted} skip-grams in {elapsed_ms:.0f}ms.",
        extra={"skipped": skipped},
    )
    return IndexResult(tree=tree, inserted=inserted, skipped=skipped)


__all__ = ["IndexResult", "build_token_tree", "partition_by_first_token"]
