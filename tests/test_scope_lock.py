"""Tests for per-scope write locks."""

import gc
import threading
import time

from lcms.services.locks import _scope_locks, scope_lock


def test_same_scope_is_mutually_exclusive():
    active = []
    overlaps = []

    def writer():
        with scope_lock('division', 'd1'):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=writer) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []


def test_lock_is_reentrant():
    with scope_lock('cup', 'c1'):
        with scope_lock('cup', 'c1'):
            entered = True

    assert entered


def test_different_scopes_do_not_block():
    acquired = threading.Event()

    def other_scope():
        with scope_lock('division', 'other'):
            acquired.set()

    with scope_lock('division', 'first'):
        thread = threading.Thread(target=other_scope)
        thread.start()
        assert acquired.wait(timeout=2)
    thread.join()


def test_idle_scopes_are_forgotten():
    with scope_lock('division', 'transient'):
        assert ('division', 'transient') in _scope_locks

    gc.collect()
    assert ('division', 'transient') not in _scope_locks
