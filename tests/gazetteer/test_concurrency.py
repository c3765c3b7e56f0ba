import logging
import pathlib
import sys
import threading

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from skipgram_gazetteer.common.concurrency import (  # noqa: E402
    MAX_WORKERS_ENV,
    PARALLEL_THRESHOLD,
    maybe_parallel_map,
    resolve_worker_count,
)


def test_env_override_beats_explicit_count(monkeypatch):
    monkeypatch.setenv(MAX_WORKERS_ENV, "3")
    assert resolve_worker_count(explicit=8) == 3
    monkeypatch.setenv(MAX_WORKERS_ENV, "0")
    assert resolve_worker_count(explicit=8) == 1


def test_explicit_count_is_used_as_given(monkeypatch):
    monkeypatch.delenv(MAX_WORKERS_ENV, raising=False)
    assert resolve_worker_count(explicit=2) == 2
    assert resolve_worker_count(explicit=0) == 1


def test_small_tasks_get_one_worker(monkeypatch):
    monkeypatch.delenv(MAX_WORKERS_ENV, raising=False)
    assert resolve_worker_count(task_size=PARALLEL_THRESHOLD - 1) == 1
    assert resolve_worker_count() == 1


def test_non_integer_override_is_ignored(monkeypatch, caplog):
    monkeypatch.setenv(MAX_WORKERS_ENV, "many")
    with caplog.at_level(logging.WARNING):
        assert resolve_worker_count(explicit=2) == 2
    assert "Ignoring non-integer worker override" in caplog.text


def test_empty_input_returns_empty_list():
    assert maybe_parallel_map([], abs, max_workers=4, parallel_threshold=1) == []


def test_thread_map_preserves_order(monkeypatch):
    monkeypatch.delenv(MAX_WORKERS_ENV, raising=False)
    seen = set()

    def record(value):
        seen.add(threading.get_ident())
        return value * 2

    values = list(range(100))
    doubled = maybe_parallel_map(
        values, record, max_workers=4, parallel_threshold=1, executor="thread"
    )
    assert doubled == [v * 2 for v in values]
    assert threading.get_ident() not in seen


def test_process_map_preserves_order(monkeypatch):
    monkeypatch.delenv(MAX_WORKERS_ENV, raising=False)
    values = [-3, 1, -2, 5, -8]
    assert maybe_parallel_map(values, abs, max_workers=2, parallel_threshold=1) == [3, 1, 2, 5, 8]


def test_below_threshold_runs_in_calling_thread(monkeypatch):
    monkeypatch.delenv(MAX_WORKERS_ENV, raising=False)
    seen = []
    maybe_parallel_map(
        [1, 2], lambda v: seen.append(threading.get_ident()), max_workers=4, parallel_threshold=3
    )
    assert seen == [threading.get_ident()] * 2
