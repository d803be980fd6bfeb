from __future__ import annotations

import threading
import time

from inventory_ledger.utils.locks import KeyedLock


def test_same_key_is_serialized():
    locks = KeyedLock()
    active = 0
    peak = 0
    counter_guard = threading.Lock()

    def worker() -> None:
        nonlocal active, peak
        with locks.hold(("prop1", "standard", 20230101)):
            with counter_guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with counter_guard:
                active -= 1

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert peak == 1
    assert len(locks) == 0


def test_lock_is_reentrant_and_keys_are_independent():
    locks = KeyedLock()

    with locks.hold("a"):
        with locks.hold("a"):
            with locks.hold("b"):
                assert len(locks) == 2
        assert len(locks) == 1

    assert len(locks) == 0


def test_released_keys_are_evicted_and_recreated():
    locks = KeyedLock()

    for date in range(20230101, 20230131):
        with locks.hold(("prop1", "standard", date)):
            pass

    assert len(locks) == 0

    with locks.hold(("prop1", "standard", 20230101)):
        assert len(locks) == 1


def test_waiting_thread_keeps_entry_alive():
    locks = KeyedLock()
    key = ("prop1", "standard", 20230101)
    entered = threading.Event()
    order: list[str] = []

    def waiter() -> None:
        entered.set()
        with locks.hold(key):
            order.append("waiter")

    with locks.hold(key):
        thread = threading.Thread(target=waiter)
        thread.start()
        entered.wait()
        time.sleep(0.05)
        order.append("holder")
    thread.join()

    assert order == ["holder", "waiter"]
    assert len(locks) == 0
