"""Work queue delivering reconcile keys to controller workers.

The queue provides the delivery guarantees the reconciler relies on:

- A key is handed to at most one worker at a time. A key added while it is
  being processed is held back until the worker calls `done`.
- A key added several times before it is picked up is delivered once.
- Failed keys are re-added after a per-key exponential backoff.
"""

import asyncio
import logging

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "RateLimiter",
    "WorkQueue",
]

DEFAULT_BASE_DELAY = 0.005
DEFAULT_MAX_DELAY = 1000.0


class RateLimiter:
    """Per-key exponential backoff.

    Delay = min(base_delay * 2 ** failures, max_delay)
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
    ) -> None:
        """Initialize the RateLimiter."""
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._failures: dict[str, int] = {}

    def when(self, key: str) -> float:
        """Record a failure for the key and return the delay before retrying."""
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1
        return min(self._base_delay * (2**failures), self._max_delay)

    def num_requeues(self, key: str) -> int:
        """Return the number of failures recorded since the key was forgotten."""
        return self._failures.get(key, 0)

    def forget(self, key: str) -> None:
        """Reset the backoff for the key."""
        self._failures.pop(key, None)


class WorkQueue:
    """Deduplicating queue of reconcile keys."""

    def __init__(self, rate_limiter: RateLimiter | None = None) -> None:
        """Initialize the WorkQueue."""
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._dirty: set[str] = set()
        self._processing: set[str] = set()
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._rate_limiter = rate_limiter or RateLimiter()
        self._shutting_down = False

    def __len__(self) -> int:
        """Number of keys ready to be handed to a worker."""
        return self._queue.qsize()

    @property
    def processing(self) -> set[str]:
        """Keys currently held by a worker."""
        return set(self._processing)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def add(self, key: str) -> bool:
        """Add a key to be processed.

        Returns False if the key was already waiting to be processed.
        """
        if self._shutting_down or key in self._dirty:
            return False
        self._dirty.add(key)
        if key in self._processing:
            _LOGGER.debug("%s is being processed, deferring", key)
        else:
            self._queue.put_nowait(key)
        return True

    def add_after(self, key: str, delay: float) -> None:
        """Add a key after the delay in seconds has passed.

        If the key is already scheduled, the earlier of the two times wins.
        """
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return
        loop = asyncio.get_running_loop()
        when = loop.time() + delay
        if (existing := self._timers.get(key)) is not None:
            if existing.when() <= when:
                return
            existing.cancel()
        _LOGGER.debug("Scheduling %s in %.3fs", key, delay)
        self._timers[key] = loop.call_at(when, self._fire, key)

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        self.add(key)

    def add_rate_limited(self, key: str) -> None:
        """Add a key after its backoff delay."""
        self.add_after(key, self._rate_limiter.when(key))

    def num_requeues(self, key: str) -> int:
        return self._rate_limiter.num_requeues(key)

    def forget(self, key: str) -> None:
        """Stop tracking backoff for a key that was processed successfully."""
        self._rate_limiter.forget(key)

    async def get(self) -> str:
        """Wait for the next key and mark it as processing."""
        key = await self._queue.get()
        self._dirty.discard(key)
        self._processing.add(key)
        return key

    def done(self, key: str) -> None:
        """Mark a key as no longer processing, re-queueing it if it was re-added."""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._queue.put_nowait(key)

    def shutdown(self) -> None:
        """Stop accepting keys and cancel pending delayed adds."""
        self._shutting_down = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
