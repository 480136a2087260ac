"""Trace spans around the steps of a reconcile.

Spans are held in a context variable. Each controller worker is its own
asyncio task with its own copy of the context, so spans from workers
reconciling different keys at the same time never interleave.
"""

import contextvars
from contextlib import contextmanager
import logging
import time
from typing import Generator

_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


_spans: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "spans", default=()
)


@contextmanager
def reconcile_context(key: str) -> Generator[None, None, None]:
    """Open the outermost span for a reconcile of the given key."""
    with trace_context(f"reconcile {key}"):
        yield


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Record a named, timed span around a step of reconcile work."""
    spans = _spans.get() + (name,)
    token = _spans.set(spans)
    path = " > ".join(spans)
    start = time.perf_counter()
    _LOGGER.debug("[Trace] > %s", path)
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        _spans.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.3fs)", path, elapsed)


def current_trace() -> list[str]:
    """Return the names of the enclosing spans, outermost first."""
    return list(_spans.get())
