import threading
import time

import pytest

from drg_mod_updater.concurrency import join_fail_fast, join_settled


def test_fail_fast_returns_results_in_call_order():
    def slow():
        time.sleep(0.05)
        return "slow"

    assert join_fail_fast([slow, lambda: "fast"]) == ["slow", "fast"]


def test_fail_fast_runs_calls_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    def meet():
        barrier.wait()
        return True

    assert join_fail_fast([meet, meet]) == [True, True]


def test_fail_fast_raises_without_waiting_for_siblings():
    release = threading.Event()

    def hang():
        release.wait(5)
        return "late"

    def fail():
        raise ValueError("boom")

    started = time.monotonic()
    try:
        with pytest.raises(ValueError, match="boom"):
            join_fail_fast([hang, fail])
        assert time.monotonic() - started < 4
    finally:
        release.set()


def test_fail_fast_empty():
    assert join_fail_fast([]) == []


def test_settled_waits_for_every_call():
    finished = []

    def ok(n):
        time.sleep(0.01 * n)
        finished.append(n)
        return n

    def fail():
        raise RuntimeError("nope")

    results = join_settled([lambda: ok(3), fail, lambda: ok(1)])

    assert sorted(finished) == [1, 3]
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].value == 3
    assert isinstance(results[1].error, RuntimeError)
    assert results[2].value == 1


def test_settled_has_no_concurrency_cap():
    barrier = threading.Barrier(8, timeout=5)

    results = join_settled([barrier.wait for _ in range(8)])

    assert all(r.ok for r in results)


def test_settled_empty():
    assert join_settled([]) == []
