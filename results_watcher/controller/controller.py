"""Controller binding a work queue of reconcile keys to a Reconciler.

Keys arrive from a periodic list of the watched resource type (a resync) and
from the reconciler itself when a run is waiting out its grace period.
Workers pull keys from the queue and invoke the reconciler. Retryable
failures are requeued with backoff, permanent failures are logged and
dropped.
"""

import asyncio
import datetime
import logging
from collections.abc import Iterable
from typing import Any

from results_watcher.cluster import ResourceClient
from results_watcher.config import ControllerConfig
from results_watcher.exceptions import WatcherException, is_retryable
from results_watcher.reconciler import Reconciler

from .queue import WorkQueue

_LOGGER = logging.getLogger(__name__)


def object_key(obj: dict[str, Any]) -> str | None:
    """Return the reconcile key of an unstructured object."""
    metadata = obj.get("metadata") or {}
    if not (namespace := metadata.get("namespace")) or not (
        name := metadata.get("name")
    ):
        return None
    return f"{namespace}/{name}"


class Controller:
    """Runs a pool of workers reconciling keys of one resource type."""

    def __init__(
        self,
        name: str,
        reconciler: Reconciler,
        config: ControllerConfig | None = None,
        queue: WorkQueue | None = None,
    ) -> None:
        """Initialize the Controller.

        Args:
            name: Name of the resource type, used for logging.
            reconciler: The reconciler invoked for each key.
            config: Worker and resync settings.
            queue: The work queue, created when not supplied.
        """
        self.name = name
        self._reconciler = reconciler
        self._config = config or ControllerConfig()
        self._queue = queue or WorkQueue()
        self._workers: list[asyncio.Task[None]] = []
        self._reconciler.set_enqueue_after(self.enqueue_after)

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    def enqueue(self, key: str) -> bool:
        """Schedule a key for reconciliation, returning False if already pending."""
        return self._queue.add(key)

    def enqueue_after(self, key: str, delay: datetime.timedelta) -> None:
        """Schedule a key for reconciliation after a delay."""
        _LOGGER.debug("[%s] Requeue %s after %s", self.name, key, delay)
        self._queue.add_after(key, delay.total_seconds())

    def resync(self, keys: Iterable[str]) -> int:
        """Enqueue every key, returning the number that were not already pending."""
        count = 0
        for key in keys:
            if self.enqueue(key):
                count += 1
        _LOGGER.debug("[%s] Resynced %d new keys", self.name, count)
        return count

    async def resync_from(
        self, resources: ResourceClient, namespace: str | None = None
    ) -> int:
        """List the objects in the cluster and enqueue their keys."""
        objects = await resources.list(namespace)
        return self.resync(key for obj in objects if (key := object_key(obj)))

    async def run_resync(
        self, resources: ResourceClient, namespace: str | None = None
    ) -> None:
        """Resync from the cluster every resync period until cancelled."""
        period = self._config.resync_period.total_seconds()
        while True:
            try:
                await self.resync_from(resources, namespace)
            except WatcherException as err:
                _LOGGER.warning("[%s] Resync failed: %s", self.name, err)
            await asyncio.sleep(period)

    async def process_next(self) -> str:
        """Wait for the next key, reconcile it and return it."""
        key = await self._queue.get()
        try:
            await self._reconciler.reconcile(key)
        except asyncio.CancelledError:
            raise
        except Exception as err:
            if is_retryable(err):
                _LOGGER.warning(
                    "[%s] Reconcile %s failed (attempt %d), requeuing: %s",
                    self.name,
                    key,
                    self._queue.num_requeues(key) + 1,
                    err,
                )
                self._queue.add_rate_limited(key)
            else:
                _LOGGER.error(
                    "[%s] Reconcile %s failed permanently: %s", self.name, key, err
                )
                self._queue.forget(key)
        else:
            self._queue.forget(key)
        finally:
            self._queue.done(key)
        return key

    async def _worker(self, worker_id: int) -> None:
        _LOGGER.debug("[%s] Worker %d started", self.name, worker_id)
        while not self._queue.shutting_down:
            await self.process_next()

    def start(self) -> None:
        """Start the worker tasks."""
        if self._workers:
            raise RuntimeError(f"Controller {self.name} already started")
        _LOGGER.info("[%s] Starting %d workers", self.name, self._config.workers)
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"{self.name} worker {i}")
            for i in range(self._config.workers)
        ]

    async def wait_idle(self) -> None:
        """Wait until no keys are queued or being processed."""
        while len(self._queue) or self._queue.processing:
            await asyncio.sleep(0.01)

    async def close(self) -> None:
        """Stop the workers and clean up."""
        self._queue.shutdown()
        for task in self._workers:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._workers = []
