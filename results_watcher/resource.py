"""Typed views over the unstructured runs watched in the cluster.

Objects are fetched from the cluster as plain dictionaries (the unstructured
representation). The reconciler never reaches into those dictionaries
directly; instead each supported kind provides a `RunObject` adapter exposing
only what the archival decision needs: identity, owner references,
annotations and the completion condition.
"""

import copy
import datetime
from dataclasses import dataclass, field
import logging
from typing import Any, ClassVar, Optional

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import ConversionError, InvalidKeyError

__all__ = [
    "ResourceKey",
    "Identity",
    "OwnerReference",
    "Condition",
    "RunObject",
    "TaskRun",
    "PipelineRun",
    "RESOURCES",
    "adapt",
]

_LOGGER = logging.getLogger(__name__)

TEKTON_GROUP = "tekton.dev"
TASK_RUN_KIND = "TaskRun"
PIPELINE_RUN_KIND = "PipelineRun"
SUCCEEDED_CONDITION = "Succeeded"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

# Runs whose completion time is unknown are treated as finished at the epoch.
EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC)


@dataclass(frozen=True, order=True)
class ResourceKey:
    """Reconcile key identifying a single namespaced object."""

    namespace: str
    name: str

    @classmethod
    def parse(cls, key: str) -> "ResourceKey":
        """Parse a `namespace/name` reconcile key."""
        parts = key.split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidKeyError(
                f"Invalid reconcile key '{key}': expected namespace/name"
            )
        return cls(namespace=parts[0], name=parts[1])

    def __str__(self) -> str:
        """Return the key in `namespace/name` form."""
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class Identity:
    """Identity of a watched object.

    The namespace and name may be reused after deletion, the uid may not.
    """

    kind: str
    namespace: str
    name: str
    uid: str

    @property
    def key(self) -> ResourceKey:
        """The reconcile key for this object."""
        return ResourceKey(self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass
class _KubernetesModel(DataClassDictMixin):
    """Base for small models parsed out of Kubernetes JSON."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class OwnerReference(_KubernetesModel):
    """A reference to the parent object that owns a run."""

    name: str
    """The name of the owner."""

    kind: Optional[str] = None
    """The kind of the owner, e.g. PipelineRun."""

    api_version: Optional[str] = field(
        metadata=field_options(alias="apiVersion"), default=None
    )
    """The apiVersion of the owner."""

    uid: Optional[str] = None
    """The uid of the owner."""

    controller: Optional[bool] = None
    """True if the owner is the managing controller."""


@dataclass
class Condition(_KubernetesModel):
    """A knative style status condition."""

    type: str
    """The condition type, e.g. Succeeded."""

    status: str
    """One of True, False or Unknown."""

    reason: Optional[str] = None
    message: Optional[str] = None

    last_transition_time: Optional[datetime.datetime] = field(
        metadata=field_options(alias="lastTransitionTime"), default=None
    )
    """When the condition last changed status."""

    @property
    def done(self) -> bool:
        """Return True if the condition reports a terminal state."""
        return self.status in (CONDITION_TRUE, CONDITION_FALSE)


def _as_utc(when: datetime.datetime) -> datetime.datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=datetime.UTC)
    return when


class RunObject:
    """Adapter over the unstructured representation of a supported run kind."""

    kind: ClassVar[str]
    """The kind of object handled by this adapter."""

    group: ClassVar[str] = TEKTON_GROUP
    """The API group of the kind."""

    def __init__(self, obj: dict[str, Any]) -> None:
        """Wrap the unstructured object, validating the fields that are required."""
        self._obj = obj
        metadata = obj.get("metadata")
        name = obj.get("kind", self.kind)
        if not isinstance(metadata, dict):
            raise ConversionError(name, "missing metadata")
        for key in ("name", "namespace", "uid"):
            if not metadata.get(key):
                raise ConversionError(
                    f"{name}/{metadata.get('namespace')}/{metadata.get('name')}",
                    f"missing metadata.{key}",
                )
        if obj.get("kind") != self.kind:
            raise ConversionError(
                f"{name}/{metadata['namespace']}/{metadata['name']}",
                f"expected kind {self.kind}",
            )

    @property
    def obj(self) -> dict[str, Any]:
        """The unstructured object."""
        return self._obj

    @property
    def metadata(self) -> dict[str, Any]:
        return self._obj["metadata"]

    @property
    def status(self) -> dict[str, Any]:
        return self._obj.get("status") or {}

    @property
    def identity(self) -> Identity:
        """The kind, namespace, name and uid of the object."""
        return Identity(
            kind=self.kind,
            namespace=self.metadata["namespace"],
            name=self.metadata["name"],
            uid=self.metadata["uid"],
        )

    @property
    def owner_references(self) -> list[OwnerReference]:
        """The owners of this object, empty for a root object."""
        refs = self.metadata.get("ownerReferences") or []
        try:
            return [OwnerReference.from_dict(ref) for ref in refs]
        except (InvalidFieldValue, MissingField) as err:
            raise ConversionError(
                str(self.identity), f"invalid ownerReferences: {err}"
            ) from err

    @property
    def annotations(self) -> dict[str, str]:
        """A copy of the annotations on the object."""
        return dict(self.metadata.get("annotations") or {})

    def with_annotations(self, annotations: dict[str, str]) -> "RunObject":
        """Return a copy of the object with the annotations replaced."""
        obj = copy.deepcopy(self._obj)
        obj["metadata"]["annotations"] = dict(annotations)
        return self.__class__(obj)

    @property
    def conditions(self) -> list[Condition]:
        """The status conditions of the object."""
        try:
            return [
                Condition.from_dict(c) for c in self.status.get("conditions") or []
            ]
        except (InvalidFieldValue, MissingField) as err:
            raise ConversionError(
                str(self.identity), f"invalid status.conditions: {err}"
            ) from err

    @property
    def completion_condition(self) -> Condition | None:
        """The Succeeded condition once the run has finished, else None."""
        for condition in self.conditions:
            if condition.type == SUCCEEDED_CONDITION and condition.done:
                return condition
        return None

    @property
    def completion_time(self) -> datetime.datetime | None:
        """When the run finished, or None while it is still running."""
        if (condition := self.completion_condition) is None:
            return None
        if condition.last_transition_time is not None:
            return _as_utc(condition.last_transition_time)
        if completion_time := self.status.get("completionTime"):
            try:
                return _as_utc(datetime.datetime.fromisoformat(completion_time))
            except ValueError as err:
                raise ConversionError(
                    str(self.identity), f"invalid status.completionTime: {err}"
                ) from err
        _LOGGER.debug("%s has no completion time, using %s", self.identity, EPOCH)
        return EPOCH

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.identity})"


class TaskRun(RunObject):
    """A single unit of work."""

    kind = TASK_RUN_KIND


class PipelineRun(RunObject):
    """A composite of TaskRuns."""

    kind = PIPELINE_RUN_KIND


KINDS: dict[str, type[RunObject]] = {
    TaskRun.kind: TaskRun,
    PipelineRun.kind: PipelineRun,
}

RESOURCES: dict[str, str] = {
    "taskruns": TASK_RUN_KIND,
    "pipelineruns": PIPELINE_RUN_KIND,
}
"""Plural resource names mapped to the kind they serve."""


def adapt(obj: dict[str, Any]) -> RunObject:
    """Return the adapter for an unstructured object of a supported kind."""
    kind = obj.get("kind")
    if not (cls := KINDS.get(kind or "")):
        metadata = obj.get("metadata") or {}
        raise ConversionError(
            f"{kind}/{metadata.get('namespace')}/{metadata.get('name')}",
            f"unsupported kind {kind!r}",
        )
    return cls(obj)
