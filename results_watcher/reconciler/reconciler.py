"""Reconciler that archives runs and cleans up completed ones.

Reconciling a key is a single pass over the current state of the object,
with no memory of previous passes:

1. Fetch the object. A missing object was deleted after it was enqueued and
   there is nothing to do.
2. Archive it. If both correlation annotations are present the existing
   Record is overwritten with the converted object, otherwise the Result and
   Record are upserted under names derived from the object uid.
3. Annotate it with the Result and Record names, unless disabled.
4. Skip cleanup for objects with owner references; the owner deletes them.
5. Delete a completed object once its grace period has elapsed.

Because every pass recomputes the decision from observed state, replayed or
reordered keys converge on the same outcome.
"""

import datetime
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
import logging

from results_watcher import annotation
from results_watcher.clock import Clock, SystemClock
from results_watcher.cluster import ResourceClient
from results_watcher.config import ReconcilerConfig
from results_watcher.context import reconcile_context, trace_context
from results_watcher.convert import Converter, to_record_data
from results_watcher.exceptions import ObjectNotFoundError
from results_watcher.names import names_for, parse_record_name
from results_watcher.resource import ResourceKey, RunObject, adapt
from results_watcher.storage import Record, ResultsClient

_LOGGER = logging.getLogger(__name__)

EnqueueAfter = Callable[[str, datetime.timedelta], None]
"""Callback asking the controller to reconcile a key again after a delay."""


class CleanupAction(StrEnum):
    """Outcome of the cleanup gate for a run."""

    OWNED = "owned"
    RUNNING = "running"
    DISABLED = "disabled"
    WAITING = "waiting"
    DELETE = "delete"


@dataclass(frozen=True)
class CleanupDecision:
    """What to do with a run after it has been archived."""

    action: CleanupAction
    remaining: datetime.timedelta | None = None
    """Time left in the grace period when waiting."""


def decide_cleanup(
    run: RunObject, config: ReconcilerConfig, now: datetime.datetime
) -> CleanupDecision:
    """Decide whether a run should be deleted from the cluster now."""
    if run.owner_references:
        return CleanupDecision(CleanupAction.OWNED)
    if (completion_time := run.completion_time) is None:
        return CleanupDecision(CleanupAction.RUNNING)
    if not config.cleanup_enabled:
        return CleanupDecision(CleanupAction.DISABLED)
    deadline = completion_time + config.completed_resource_grace_period
    if now >= deadline:
        return CleanupDecision(CleanupAction.DELETE)
    return CleanupDecision(CleanupAction.WAITING, remaining=deadline - now)


class Reconciler:
    """Reconciles a single resource type against the results service.

    The reconciler holds no per-key state. It is safe to run concurrently for
    different keys, and the controller must not run it concurrently for the
    same key.
    """

    def __init__(
        self,
        resources: ResourceClient,
        results: ResultsClient,
        config: ReconcilerConfig | None = None,
        clock: Clock | None = None,
        converter: Converter = to_record_data,
        enqueue_after: EnqueueAfter | None = None,
    ) -> None:
        """Initialize the Reconciler.

        Args:
            resources: Client for the live objects being archived.
            results: Client for the results storage service.
            config: Annotation and cleanup behavior.
            clock: Source of the current time for grace period checks.
            converter: Maps a run to its archived payload.
            enqueue_after: Called to revisit a run when its grace period ends.
        """
        self._resources = resources
        self._results = results
        self._config = config or ReconcilerConfig()
        self._clock = clock or SystemClock()
        self._converter = converter
        self._enqueue_after = enqueue_after

    @property
    def config(self) -> ReconcilerConfig:
        return self._config

    def set_enqueue_after(self, enqueue_after: EnqueueAfter | None) -> None:
        """Set the callback used to revisit runs waiting on a grace period."""
        self._enqueue_after = enqueue_after

    async def reconcile(self, key: str) -> None:
        """Reconcile the object with the `namespace/name` key.

        Raises:
            InvalidKeyError: If the key is malformed.
            ConversionError: If the object can never be archived as-is.
            RetryableError: On a transient failure of either client. The
                caller is expected to retry with backoff.
        """
        resource_key = ResourceKey.parse(key)
        with reconcile_context(key):
            try:
                obj = await self._resources.get(
                    resource_key.namespace, resource_key.name
                )
            except ObjectNotFoundError:
                _LOGGER.debug("%s no longer exists, skipping", key)
                return
            run = adapt(obj)

            record = await self._archive(run)
            if self._config.disable_annotation_update:
                _LOGGER.debug("Annotation updates disabled, not annotating %s", run)
            else:
                await self._annotate(run, record)

            await self._cleanup(run)

    async def _archive(self, run: RunObject) -> Record:
        """Upsert the Record for the run and return it."""
        with trace_context("archive"):
            current = annotation.read(run)
            data = self._converter(run)
            if current.complete:
                _LOGGER.debug("Updating Record %s for %s", current.record, run)
                return await self._results.upsert_record(str(current.record), data)

            if current.result or current.record:
                _LOGGER.info(
                    "%s has a partial annotation pair %s, archiving as new",
                    run,
                    current,
                )
            record_name = names_for(run)
            result = await self._results.upsert_result(str(record_name.parent))
            record = await self._results.upsert_record(str(record_name), data)
            _LOGGER.info(
                "Archived %s as Record %s in Result %s", run, record.name, result.name
            )
            return record

    async def _annotate(self, run: RunObject, record: Record) -> None:
        """Write the correlation annotations back to the live object."""
        with trace_context("annotate"):
            current = annotation.read(run)
            if current.complete:
                result = str(current.result)
            else:
                result = str(parse_record_name(record.name).parent)
            updated = annotation.write(run, result=result, record=record.name)
            if updated is run:
                _LOGGER.debug("%s annotations are up to date", run)
                return
            try:
                await self._resources.update(updated.obj)
            except ObjectNotFoundError:
                _LOGGER.debug("%s was deleted before it could be annotated", run)
                return
            _LOGGER.debug("Annotated %s", run)

    async def _cleanup(self, run: RunObject) -> None:
        """Delete the run if it is complete, unowned and past its grace period."""
        with trace_context("cleanup"):
            decision = decide_cleanup(run, self._config, self._clock.now())
            _LOGGER.debug("Cleanup decision for %s: %s", run, decision)
            if decision.action == CleanupAction.WAITING:
                if self._enqueue_after is not None and decision.remaining is not None:
                    self._enqueue_after(str(run.identity.key), decision.remaining)
                return
            if decision.action != CleanupAction.DELETE:
                return
            identity = run.identity
            try:
                await self._resources.delete(
                    identity.namespace, identity.name, uid=identity.uid
                )
            except ObjectNotFoundError:
                _LOGGER.debug("%s was already deleted", run)
                return
            _LOGGER.info("Deleted completed %s", run)
