# tests/test_concurrency.py
"""Concurrent writers against a shared database must not lose updates."""

import threading
from concurrent.futures import ThreadPoolExecutor

from engagement_ledger.core.errors import NotFoundError

WORKERS = 8


def _run_together(count: int, fn) -> list:
    barrier = threading.Barrier(count)

    def worker(index: int):
        barrier.wait()
        return fn(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return [future.result() for future in [pool.submit(worker, i) for i in range(count)]]


def test_distinct_users_liking_one_post(gateway, assert_consistent) -> None:
    post = gateway.create_post("alice", "going viral")

    results = _run_together(WORKERS, lambda i: gateway.toggle_like(post.id, f"fan-{i}"))

    assert all(result.liked for result in results)
    assert sorted(result.new_count for result in results) == list(range(1, WORKERS + 1))
    assert gateway.get_post(post.id).like_count == WORKERS
    assert gateway.get_user_stats("alice").total_likes_received == WORKERS
    assert_consistent()


def test_same_user_scans_in_parallel(gateway, assert_consistent) -> None:
    _run_together(WORKERS, lambda i: gateway.submit_scan("alice", "Suspect", "image", i))

    assert gateway.get_user_stats("alice").scan_count == WORKERS
    assert len(gateway.list_scans("alice", limit=100)) == WORKERS
    assert_consistent()


def test_same_author_posting_in_parallel(gateway, assert_consistent) -> None:
    _run_together(WORKERS, lambda i: gateway.create_post("alice", f"thread {i}"))

    assert gateway.get_user_stats("alice").post_count == WORKERS
    assert_consistent()


def test_delete_racing_with_likes(gateway, assert_consistent) -> None:
    post = gateway.create_post("alice", "about to vanish")
    for user in ("early-1", "early-2", "early-3"):
        gateway.toggle_like(post.id, user)

    def act(index: int):
        if index == 0:
            return gateway.delete_post(post.id, "alice")
        try:
            return gateway.toggle_like(post.id, f"late-{index}")
        except NotFoundError:
            return None

    results = _run_together(WORKERS, act)

    deleted = results[0]
    committed_likes = [result for result in results[1:] if result is not None]
    assert deleted.likes_lost == 3 + len(committed_likes)
    stats = gateway.get_user_stats("alice")
    assert stats.post_count == 0
    assert stats.total_likes_received == 0
    assert_consistent()


def test_toggle_by_same_user_in_parallel_settles_consistently(gateway, assert_consistent) -> None:
    post = gateway.create_post("alice", "flip flop")

    _run_together(WORKERS, lambda i: gateway.toggle_like(post.id, "bob"))

    # An even number of toggles leaves the like removed.
    view = gateway.get_post(post.id)
    assert view.liked_by == []
    assert gateway.get_user_stats("alice").total_likes_received == 0
    assert_consistent()
