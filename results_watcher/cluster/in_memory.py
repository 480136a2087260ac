"""Module for an in memory cluster used by tests and dry runs."""

import copy
from dataclasses import dataclass
import itertools
import logging
from typing import Any
import uuid

from results_watcher.exceptions import (
    ConflictError,
    InputException,
    ObjectNotFoundError,
)
from results_watcher.resource import ResourceKey

from .client import ResourceClient

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Action:
    """A request made against the InMemoryResourceClient."""

    verb: str
    key: ResourceKey


def _key(obj: dict[str, Any]) -> ResourceKey:
    metadata = obj.get("metadata") or {}
    if not metadata.get("namespace") or not metadata.get("name"):
        raise InputException(f"Object missing metadata.namespace or name: {obj}")
    return ResourceKey(metadata["namespace"], metadata["name"])


class InMemoryResourceClient(ResourceClient):
    """Fake dynamic client holding objects in memory.

    Updates follow the optimistic concurrency rules of the API server: an
    update carrying a resourceVersion other than the stored one is rejected.
    An update without a resourceVersion is applied unconditionally.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryResourceClient."""
        self._objects: dict[ResourceKey, dict[str, Any]] = {}
        self._versions = itertools.count(1)
        self.actions: list[Action] = []

    def _record(self, verb: str, key: ResourceKey) -> None:
        _LOGGER.debug("%s %s", verb, key)
        self.actions.append(Action(verb, key))

    def verbs(self, verb: str) -> list[ResourceKey]:
        """Return the keys of all requests made with the given verb."""
        return [action.key for action in self.actions if action.verb == verb]

    async def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Create a new object, assigning a uid and resourceVersion."""
        key = _key(obj)
        self._record("create", key)
        if key in self._objects:
            raise ConflictError(f"Object {key} already exists")
        stored = copy.deepcopy(obj)
        metadata = stored["metadata"]
        metadata.setdefault("uid", str(uuid.uuid4()))
        metadata.setdefault("generation", 1)
        metadata["resourceVersion"] = str(next(self._versions))
        self._objects[key] = stored
        return copy.deepcopy(stored)

    async def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Return the object with the given namespace and name."""
        key = ResourceKey(namespace, name)
        self._record("get", key)
        if (obj := self._objects.get(key)) is None:
            raise ObjectNotFoundError(f"Object {key} not found")
        return copy.deepcopy(obj)

    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the object, returning the stored result."""
        key = _key(obj)
        self._record("update", key)
        if (existing := self._objects.get(key)) is None:
            raise ObjectNotFoundError(f"Object {key} not found")
        metadata = obj["metadata"]
        existing_metadata = existing["metadata"]
        if (version := metadata.get("resourceVersion")) and version != (
            existing_metadata["resourceVersion"]
        ):
            raise ConflictError(
                f"Operation cannot be fulfilled on {key}: the object has been "
                "modified; please apply your changes to the latest version "
                "and try again"
            )
        if (uid := metadata.get("uid")) and uid != existing_metadata["uid"]:
            raise ConflictError(f"Precondition failed for {key}: uid mismatch")
        stored = copy.deepcopy(obj)
        stored["metadata"]["uid"] = existing_metadata["uid"]
        stored["metadata"]["resourceVersion"] = str(next(self._versions))
        self._objects[key] = stored
        return copy.deepcopy(stored)

    async def delete(
        self, namespace: str, name: str, uid: str | None = None
    ) -> None:
        """Delete the object with the given namespace and name."""
        key = ResourceKey(namespace, name)
        self._record("delete", key)
        if (existing := self._objects.get(key)) is None:
            raise ObjectNotFoundError(f"Object {key} not found")
        if uid and uid != existing["metadata"]["uid"]:
            raise ConflictError(f"Precondition failed for {key}: uid mismatch")
        del self._objects[key]

    async def list(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """List objects in a namespace, or in all namespaces when None."""
        return [
            copy.deepcopy(obj)
            for key, obj in sorted(self._objects.items())
            if namespace is None or key.namespace == namespace
        ]
