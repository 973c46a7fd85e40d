"""
Tests for call_with_timeout and KeyedLocks.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from tweetonium.core.exceptions import CallTimeout
from tweetonium.core.locks import KeyedLocks
from tweetonium.core.timeouts import call_with_timeout


def test_returns_result_within_deadline():
    assert call_with_timeout(lambda a, b=0: a + b, 2, b=3, timeout=1.0) == 5


def test_no_timeout_runs_inline():
    caller = threading.current_thread()
    seen = []
    call_with_timeout(lambda: seen.append(threading.current_thread()), timeout=None)
    call_with_timeout(lambda: seen.append(threading.current_thread()), timeout=0)
    assert seen == [caller, caller]


def test_timeout_raises_call_timeout():
    release = threading.Event()
    try:
        with pytest.raises(CallTimeout) as exc:
            call_with_timeout(release.wait, 5.0, timeout=0.05, label="slow.call")
    finally:
        release.set()
    assert exc.value.context["call"] == "slow.call"
    assert exc.value.code == "timeout"


def test_exceptions_propagate_unchanged():
    def fail():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        call_with_timeout(fail, timeout=1.0)


def test_keyed_locks_serialize_same_key_only():
    locks = KeyedLocks()
    active = {"a": 0, "b": 0}
    peak = {"a": 0, "b": 0}
    guard = threading.Lock()

    def work(key):
        with locks.hold(key):
            with guard:
                active[key] += 1
                peak[key] = max(peak[key], active[key])
            time.sleep(0.01)
            with guard:
                active[key] -= 1

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, ["a", "b"] * 8))

    assert peak == {"a": 1, "b": 1}
    # entries are dropped once no caller holds them
    assert len(locks) == 0
