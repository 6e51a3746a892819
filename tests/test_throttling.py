import threading
import time

import pytest

from researchhub.utils.throttling import UserRateLimiter, RequestDeduplicator


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_rate_limiter_cooldown():
    clock = FakeClock()
    limiter = UserRateLimiter(cooldown_seconds=10, clock=clock)

    assert limiter.allow_request(1, "research") == (True, 0)

    clock.now += 3
    assert limiter.allow_request(1, "research") == (False, 7)

    clock.now += 7.5
    assert limiter.allow_request(1, "research") == (True, 0)


def test_rate_limiter_keys_by_user_and_type():
    limiter = UserRateLimiter(cooldown_seconds=10, clock=FakeClock())

    assert limiter.allow_request(1, "research")[0]
    assert limiter.allow_request(2, "research")[0]
    assert limiter.allow_request(1, "placement")[0]
    assert not limiter.allow_request(1, "research")[0]


def test_rate_limiter_sweeps_old_entries():
    clock = FakeClock()
    limiter = UserRateLimiter(cooldown_seconds=10, clock=clock)
    limiter.allow_request(1, "research")

    clock.now += 25
    limiter.allow_request(2, "research")

    assert list(limiter._last_requests) == ["2_research"]


def test_deduplicator_returns_result():
    dedup = RequestDeduplicator(timeout_seconds=5)
    assert dedup.run("key", lambda: {"title": "Roadmap"}) == {"title": "Roadmap"}
    assert dedup.in_flight() == 0


def test_deduplicator_propagates_errors():
    dedup = RequestDeduplicator(timeout_seconds=5)

    def boom():
        raise ValueError("AI down")

    with pytest.raises(ValueError, match="AI down"):
        dedup.run("key", boom)
    assert dedup.in_flight() == 0


def test_deduplicator_shares_one_call_between_concurrent_callers():
    dedup = RequestDeduplicator(timeout_seconds=5)
    started = threading.Event()
    release = threading.Event()
    calls = []

    def generate():
        calls.append(1)
        started.set()
        release.wait(5)
        return "roadmap"

    results = []
    owner = threading.Thread(target=lambda: results.append(dedup.run("same", generate)))
    owner.start()
    assert started.wait(5)

    waiter = threading.Thread(target=lambda: results.append(dedup.run("same", generate)))
    waiter.start()
    time.sleep(0.2)
    release.set()

    owner.join(5)
    waiter.join(5)

    assert results == ["roadmap", "roadmap"]
    assert len(calls) == 1


def test_deduplicator_waiter_times_out():
    # frozen clock: the pending entry is never swept, the wait itself times out
    dedup = RequestDeduplicator(timeout_seconds=0.1, clock=FakeClock())
    started = threading.Event()
    release = threading.Event()

    owner = threading.Thread(target=lambda: dedup.run("slow", lambda: (started.set(), release.wait(5))))
    owner.start()
    assert started.wait(5)

    try:
        with pytest.raises(TimeoutError):
            dedup.run("slow", lambda: "never")
    finally:
        release.set()
        owner.join(5)
