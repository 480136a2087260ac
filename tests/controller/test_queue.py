"""Tests for the work queue."""

import asyncio

import pytest

from results_watcher.controller import RateLimiter, WorkQueue


def test_rate_limiter_backoff() -> None:
    """Test the delay doubles per failure up to the maximum."""
    limiter = RateLimiter(base_delay=1.0, max_delay=5.0)
    assert [limiter.when("a") for _ in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]
    assert limiter.num_requeues("a") == 5
    assert limiter.when("b") == 1.0

    limiter.forget("a")
    assert limiter.num_requeues("a") == 0
    assert limiter.when("a") == 1.0


def test_rate_limiter_defaults() -> None:
    """Test the default backoff curve."""
    limiter = RateLimiter()
    assert limiter.when("a") == pytest.approx(0.005)
    assert limiter.when("a") == pytest.approx(0.01)
    for _ in range(30):
        limiter.when("a")
    assert limiter.when("a") == 1000.0


async def test_add_deduplicates() -> None:
    """Test a key added several times is delivered once."""
    queue = WorkQueue()
    assert queue.add("ns/a")
    assert not queue.add("ns/a")
    assert queue.add("ns/b")
    assert len(queue) == 2

    assert await queue.get() == "ns/a"
    assert await queue.get() == "ns/b"
    assert len(queue) == 0


async def test_add_while_processing() -> None:
    """Test a key re-added while being processed waits for done."""
    queue = WorkQueue()
    queue.add("ns/a")
    key = await queue.get()
    assert queue.processing == {"ns/a"}

    assert queue.add(key)
    assert not queue.add(key)
    assert len(queue) == 0

    queue.done(key)
    assert queue.processing == set()
    assert len(queue) == 1
    assert await queue.get() == key
    queue.done(key)
    assert len(queue) == 0


async def test_done_without_readd() -> None:
    """Test a processed key is not delivered again unless re-added."""
    queue = WorkQueue()
    queue.add("ns/a")
    queue.done(await queue.get())
    assert len(queue) == 0
    assert queue.processing == set()


async def test_add_after() -> None:
    """Test a delayed add arrives after the delay."""
    queue = WorkQueue()
    queue.add_after("ns/a", 0.02)
    assert len(queue) == 0

    key = await asyncio.wait_for(queue.get(), timeout=5)
    assert key == "ns/a"


async def test_add_after_non_positive_delay() -> None:
    """Test a delay of zero or less adds the key immediately."""
    queue = WorkQueue()
    queue.add_after("ns/a", 0)
    queue.add_after("ns/b", -1)
    assert len(queue) == 2


async def test_add_after_earliest_wins() -> None:
    """Test that rescheduling a key keeps the earlier of the two times."""
    queue = WorkQueue()
    queue.add_after("ns/a", 3600)
    queue.add_after("ns/a", 0.01)
    queue.add_after("ns/b", 0.01)
    queue.add_after("ns/b", 3600)

    keys = {
        await asyncio.wait_for(queue.get(), timeout=5),
        await asyncio.wait_for(queue.get(), timeout=5),
    }
    assert keys == {"ns/a", "ns/b"}
    queue.shutdown()


async def test_add_rate_limited() -> None:
    """Test a rate limited add is delayed and counted."""
    queue = WorkQueue(RateLimiter(base_delay=0.01))
    queue.add_rate_limited("ns/a")
    assert queue.num_requeues("ns/a") == 1
    assert len(queue) == 0

    assert await asyncio.wait_for(queue.get(), timeout=5) == "ns/a"
    queue.forget("ns/a")
    assert queue.num_requeues("ns/a") == 0


async def test_shutdown() -> None:
    """Test that shutdown cancels delayed adds and rejects new keys."""
    queue = WorkQueue()
    queue.add_after("ns/a", 0.01)
    queue.shutdown()
    assert queue.shutting_down

    queue.add("ns/b")
    queue.add_after("ns/c", 0)
    await asyncio.sleep(0.05)
    assert len(queue) == 0
