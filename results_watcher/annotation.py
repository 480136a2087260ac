"""Correlation annotations linking a run to its archived Record.

The annotations are written once by the reconciler and are stable for the
lifetime of the object. Reading and writing is pure; the reconciler performs
the update call against the cluster.
"""

from dataclasses import dataclass
import logging

from .resource import RunObject

__all__ = [
    "RESULT",
    "RECORD",
    "Annotations",
    "read",
    "write",
]

_LOGGER = logging.getLogger(__name__)

RESULT = "results.tekton.dev/result"
"""Name of the Result grouping the archived Record."""

RECORD = "results.tekton.dev/record"
"""Name of the archived Record."""


@dataclass(frozen=True)
class Annotations:
    """The pair of correlation annotations on a run."""

    result: str | None = None
    record: str | None = None

    @property
    def complete(self) -> bool:
        """Return True if both annotations are present.

        A half written pair is never trusted.
        """
        return bool(self.result) and bool(self.record)


def read(run: RunObject) -> Annotations:
    """Read the correlation annotations from the run."""
    annotations = run.annotations
    return Annotations(result=annotations.get(RESULT), record=annotations.get(RECORD))


def write(run: RunObject, result: str, record: str) -> RunObject:
    """Return the run with both correlation annotations set.

    The same object is returned, unmodified, if the annotations already hold
    these values so that callers can skip the update call.
    """
    if read(run) == Annotations(result=result, record=record):
        return run
    annotations = run.annotations
    annotations[RESULT] = result
    annotations[RECORD] = record
    _LOGGER.debug("Annotating %s with result=%s record=%s", run, result, record)
    return run.with_annotations(annotations)
