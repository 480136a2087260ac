"""Tests for reconcile tracing context."""

import asyncio

from results_watcher.context import (
    current_trace,
    reconcile_context,
    trace_context,
)


def test_trace_context() -> None:
    """Test nested spans are tracked and unwound."""
    assert current_trace() == []
    with reconcile_context("ns/a"):
        assert current_trace() == ["reconcile ns/a"]
        with trace_context("archive"):
            assert current_trace() == ["reconcile ns/a", "archive"]
        assert current_trace() == ["reconcile ns/a"]
    assert current_trace() == []


async def test_trace_context_per_task() -> None:
    """Test that concurrent tasks do not share spans."""
    seen: dict[str, list[str]] = {}

    async def work(key: str) -> None:
        with reconcile_context(key):
            await asyncio.sleep(0.01)
            seen[key] = current_trace()

    await asyncio.gather(work("ns/a"), work("ns/b"))

    assert seen == {"ns/a": ["reconcile ns/a"], "ns/b": ["reconcile ns/b"]}
