from __future__ import annotations

import threading

from health_monitor.counter import FailureCounter


def test_counter_starts_at_zero_and_increments_and_fetches() -> None:
    counter = FailureCounter()
    assert counter.value == 0
    assert counter.increment() == 1
    assert counter.increment() == 2
    assert counter.value == 2

    counter.reset()
    assert counter.value == 0
    assert counter.increment() == 1


def test_concurrent_increments_are_not_lost() -> None:
    counter = FailureCounter()
    seen: list[int] = []
    seen_lock = threading.Lock()

    def worker() -> None:
        for _ in range(500):
            n = counter.increment()
            with seen_lock:
                seen.append(n)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.value == 4000
    # increment-and-fetch hands every caller a distinct value
    assert sorted(seen) == list(range(1, 4001))
