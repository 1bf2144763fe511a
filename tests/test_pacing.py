"""Tests for the rate policy."""

import asyncio

import pytest

from scenevid.pacing import RatePolicy


def test_starts_are_spaced():
    policy = RatePolicy(min_interval=0.1)

    async def scenario():
        loop = asyncio.get_running_loop()
        starts = []

        async def worker():
            await policy.wait_turn()
            starts.append(loop.time())

        await asyncio.gather(worker(), worker(), worker())
        return sorted(starts)

    starts = asyncio.run(scenario())

    gaps = [later - earlier for earlier, later in zip(starts, starts[1:])]
    assert all(gap >= 0.09 for gap in gaps)


def test_zero_interval_does_not_wait():
    policy = RatePolicy()

    async def scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        for _ in range(5):
            await policy.wait_turn()
        return loop.time() - started

    assert asyncio.run(scenario()) < 0.05


def test_backoff_doubles_and_caps():
    policy = RatePolicy(max_retries=5, retry_delay=2.0, max_retry_delay=10.0)

    assert [policy.backoff_delay(attempt) for attempt in range(1, 5)] == [2.0, 4.0, 8.0, 10.0]


def test_policy_survives_new_event_loops():
    policy = RatePolicy(min_interval=0.01)

    asyncio.run(policy.wait_turn())
    asyncio.run(policy.wait_turn())
    asyncio.run(policy.wait_turn())


def test_rejects_negative_values():
    with pytest.raises(ValueError):
        RatePolicy(min_interval=-1)
    with pytest.raises(ValueError):
        RatePolicy(max_retries=-1)
