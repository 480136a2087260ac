"""Stable names for archived Results and Records.

Names have the form `<namespace>/results/<result-id>` for a Result and
`<namespace>/results/<result-id>/records/<record-id>` for a Record. Ids are
derived from object uids rather than generated, so archiving the same object
twice always addresses the same Record.
"""

from dataclasses import dataclass
import re

from .exceptions import InvalidNameError
from .resource import RunObject

__all__ = [
    "ResultName",
    "RecordName",
    "parse_result_name",
    "parse_record_name",
    "names_for",
]

WILDCARD = "-"

_SEGMENT = r"[A-Za-z0-9][A-Za-z0-9._-]*"
_RESULT_RE = re.compile(
    rf"^(?P<namespace>{_SEGMENT})/results/(?P<result>{_SEGMENT}|{WILDCARD})$"
)
_RECORD_RE = re.compile(
    rf"^(?P<namespace>{_SEGMENT})/results/(?P<result>{_SEGMENT})"
    rf"/records/(?P<record>{_SEGMENT})$"
)


@dataclass(frozen=True, order=True)
class ResultName:
    """Parsed name of a Result."""

    namespace: str
    result_id: str

    def record(self, record_id: str) -> "RecordName":
        """Return the name of a Record within this Result."""
        return RecordName(self.namespace, self.result_id, record_id)

    @property
    def is_wildcard(self) -> bool:
        return self.result_id == WILDCARD

    def __str__(self) -> str:
        return f"{self.namespace}/results/{self.result_id}"


@dataclass(frozen=True, order=True)
class RecordName:
    """Parsed name of a Record."""

    namespace: str
    result_id: str
    record_id: str

    @property
    def parent(self) -> ResultName:
        """The Result that owns this Record."""
        return ResultName(self.namespace, self.result_id)

    def __str__(self) -> str:
        return f"{self.parent}/records/{self.record_id}"


def parse_result_name(name: str) -> ResultName:
    """Parse a `<namespace>/results/<id>` name."""
    if not (match := _RESULT_RE.match(name)):
        raise InvalidNameError(f"Invalid Result name '{name}'")
    return ResultName(match.group("namespace"), match.group("result"))


def parse_record_name(name: str) -> RecordName:
    """Parse a `<namespace>/results/<id>/records/<id>` name."""
    if not (match := _RECORD_RE.match(name)):
        raise InvalidNameError(f"Invalid Record name '{name}'")
    return RecordName(
        match.group("namespace"), match.group("result"), match.group("record")
    )


def names_for(run: RunObject) -> RecordName:
    """Return the deterministic Record name for a run.

    Both ids are the run uid, so the name never changes over the lifetime of
    the object, even when its owner references do.
    """
    identity = run.identity
    return RecordName(identity.namespace, identity.uid, identity.uid)
