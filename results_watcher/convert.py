"""Conversion of a run into its canonical archival payload."""

from collections.abc import Callable
import json
import logging

from .exceptions import ConversionError
from .resource import RunObject
from .storage.model import RecordData

__all__ = [
    "Converter",
    "to_record_data",
]

_LOGGER = logging.getLogger(__name__)

Converter = Callable[[RunObject], RecordData]
"""A pure function mapping a run to the payload stored in its Record."""

# Server managed bookkeeping that is not part of the archived state.
STRIP_METADATA = ["managedFields"]


def to_record_data(run: RunObject) -> RecordData:
    """Convert the run into the payload stored in its Record.

    The result depends only on the object passed in, so converting the same
    snapshot twice produces equal payloads.
    """
    obj = run.obj
    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    if not api_version:
        raise ConversionError(str(run.identity), "missing apiVersion")
    if not kind:
        raise ConversionError(str(run.identity), "missing kind")
    try:
        value = json.loads(json.dumps(obj))
    except (TypeError, ValueError) as err:
        raise ConversionError(str(run.identity), f"not serializable: {err}") from err
    metadata = value.get("metadata") or {}
    for key in STRIP_METADATA:
        metadata.pop(key, None)
    return RecordData(type=f"{api_version}.{kind}", value=value)
