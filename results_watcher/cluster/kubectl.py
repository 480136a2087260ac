"""Module for a ResourceClient that talks to the cluster through kubectl."""

import json
import logging
from typing import Any

from results_watcher import command
from results_watcher.exceptions import (
    CommandException,
    ConflictError,
    ObjectNotFoundError,
)

from .client import ResourceClient

_LOGGER = logging.getLogger(__name__)

KUBECTL_BIN = "kubectl"

NOT_FOUND_MARKERS = ("(NotFound)",)
CONFLICT_MARKERS = ("(Conflict)", "the object has been modified")


class KubectlException(CommandException):
    """Raised when there is a failure running a kubectl command."""


def classify(err: CommandException, subject: str) -> Exception | None:
    """Map a kubectl failure to a NotFound or Conflict error, if it is one."""
    message = str(err)
    if any(marker in message for marker in CONFLICT_MARKERS):
        return ConflictError(f"Conflict updating {subject}: {message}")
    if any(marker in message for marker in NOT_FOUND_MARKERS):
        return ObjectNotFoundError(f"{subject} not found")
    return None


class KubectlResourceClient(ResourceClient):
    """ResourceClient for a single resource type, e.g. `taskruns.tekton.dev`."""

    def __init__(
        self,
        resource: str,
        context: str | None = None,
        kubectl: str = KUBECTL_BIN,
    ) -> None:
        """Initialize the client for the resource in the kubeconfig context."""
        self._resource = resource
        self._context = context
        self._kubectl = kubectl

    def _command(self, args: list[str]) -> command.Command:
        cmd = [self._kubectl]
        if self._context:
            cmd.extend(["--context", self._context])
        return command.Command(cmd + args, exc=KubectlException)

    async def _run(
        self, args: list[str], subject: str, stdin: bytes | None = None
    ) -> str:
        try:
            return await command.run(self._command(args), stdin)
        except KubectlException as err:
            if (mapped := classify(err, subject)) is None:
                raise
            raise mapped from err

    @staticmethod
    def _parse(out: str) -> Any:
        try:
            return json.loads(out)
        except ValueError as err:
            raise KubectlException(f"kubectl returned invalid JSON: {err}") from err

    async def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Return the object with the given namespace and name."""
        subject = f"{self._resource} {namespace}/{name}"
        out = await self._run(
            ["get", self._resource, name, "--namespace", namespace, "-o", "json"],
            subject,
        )
        return self._parse(out)

    async def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the object, returning the stored result."""
        metadata = obj.get("metadata") or {}
        subject = f"{self._resource} {metadata.get('namespace')}/{metadata.get('name')}"
        out = await self._run(
            ["replace", "-o", "json", "-f", "-"],
            subject,
            stdin=json.dumps(obj).encode("utf-8"),
        )
        return self._parse(out)

    async def delete(
        self, namespace: str, name: str, uid: str | None = None
    ) -> None:
        """Delete the object with the given namespace and name.

        kubectl has no flag for a delete precondition, so the uid is compared
        against a fresh read just before the delete is issued.
        """
        subject = f"{self._resource} {namespace}/{name}"
        if uid:
            current = await self.get(namespace, name)
            if (current.get("metadata") or {}).get("uid") != uid:
                raise ConflictError(f"Precondition failed for {subject}: uid mismatch")
        await self._run(
            ["delete", self._resource, name, "--namespace", namespace, "--wait=false"],
            subject,
        )
        _LOGGER.debug("Deleted %s", subject)

    async def list(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """List objects in a namespace, or in all namespaces when None."""
        args = ["get", self._resource, "-o", "json"]
        if namespace:
            args.extend(["--namespace", namespace])
        else:
            args.append("--all-namespaces")
        out = await self._run(args, self._resource)
        return self._parse(out).get("items") or []
