"""Client contract for the live cluster objects being watched."""

from abc import ABC, abstractmethod
from typing import Any


class ResourceClient(ABC):
    """Abstract client for one resource type in the cluster.

    Objects are exchanged in their unstructured form, as plain dictionaries.
    """

    @abstractmethod
    async def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Return the object with the given namespace and name.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """

    @abstractmethod
    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the object, returning the stored result.

        Raises:
            ConflictError: If metadata.resourceVersion is stale. The caller
                should fetch the object again before retrying.
            ObjectNotFoundError: If the object no longer exists.
        """

    @abstractmethod
    async def delete(
        self, namespace: str, name: str, uid: str | None = None
    ) -> None:
        """Delete the object with the given namespace and name.

        When a uid is given the object is only deleted if it is still the
        same object, and not a new one created under the same name.

        Raises:
            ConflictError: If the uid does not match the stored object.
            ObjectNotFoundError: If the object does not exist.
        """

    @abstractmethod
    async def list(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """List objects in a namespace, or in all namespaces when None."""
