"""
Worker-pool helpers for the parallel stages of model construction.

Variant generation is pure per entry and runs on a process pool; tree
insertion mutates one shared structure and runs on a thread pool. Both go
through :func:`maybe_parallel_map`, which returns results in input order so
the outcome never depends on the worker count.
"""

from __future__ import annotations

import logging
import math
import multiprocessing
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Iterable, List, Literal, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

MAX_WORKERS_ENV = "GAZETTEER_MAX_WORKERS"

# Inputs shorter than this run serially unless a caller asks otherwise.
PARALLEL_THRESHOLD = 2000

logger = logging.getLogger(__name__)


def _env_requested_workers() -> int | None:
    raw = os.getenv(MAX_WORKERS_ENV)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer worker override", extra={"value": raw})
        return None
    return max(value, 0)


def resolve_worker_count(explicit: int | None = None, task_size: int | None = None) -> int:
    """Worker count for a task: env override, then ``explicit``, then sized by cpu count.

    Explicit requests are honoured as given; only the automatic choice looks
    at the machine.
    """
    requested = _env_requested_workers()
    if requested is not None:
        return max(1, requested)
    if explicit is not None:
        return max(1, explicit)

    cpus = os.cpu_count() or 1
    if cpus <= 1 or not task_size or task_size < PARALLEL_THRESHOLD:
        return 1
    return min(cpus, max(2, math.ceil(task_size / 20000)))


def maybe_parallel_map(
    seq: Sequence[T] | Iterable[T],
    func: Callable[[T], R],
    *,
    max_workers: int | None = None,
    parallel_threshold: Optional[int] = None,
    executor: Literal["process", "thread"] = "process",
    chunksize: int | None = None,
) -> List[R]:
    """
    Apply func across seq, using a worker pool when the workload is large enough.

    ``executor="process"`` needs a picklable, module-level ``func``; use
    ``"thread"`` when ``func`` mutates shared state that guards itself with
    locks. GAZETTEER_MAX_WORKERS pins the worker count (1 disables
    parallelism). Inputs shorter than ``parallel_threshold`` (default
    :data:`PARALLEL_THRESHOLD`) run serially in the calling thread.
    """
    values = list(seq)
    count = len(values)
    if count == 0:
        return []

    threshold = PARALLEL_THRESHOLD if parallel_threshold is None else parallel_threshold
    workers = resolve_worker_count(explicit=max_workers, task_size=count)
    if workers <= 1 or count < threshold:
        return [func(item) for item in values]

    computed_chunksize = chunksize or max(1, min(1000, count // (workers * 4)))
    logger.debug(
        "Running parallel map",
        extra={"executor": executor, "workers": workers, "items": count},
    )

    if executor == "thread":
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(func, values))

    def _run_with_executor(mp_ctx: multiprocessing.context.BaseContext | None = None) -> List[R]:
        pool: Executor
        with ProcessPoolExecutor(max_workers=workers, mp_context=mp_ctx) as pool:
            return list(pool.map(func, values, chunksize=computed_chunksize))

    try:
        return _run_with_executor()
    except OSError:
        # Sandboxes can reject the default start method; retry with fork.
        try:
            fork_ctx = multiprocessing.get_context("fork")
        except ValueError:
            fork_ctx = None
        if fork_ctx is not None:
            try:
                return _run_with_executor(fork_ctx)
            except OSError:
                pass
        logger.warning("Worker processes unavailable; running serially", extra={"items": count})
        return [func(item) for item in values]


__all__ = ["MAX_WORKERS_ENV", "PARALLEL_THRESHOLD", "maybe_parallel_map", "resolve_worker_count"]
