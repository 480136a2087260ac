"""Configuration objects for results-watcher.

Configuration may be supplied as a YAML file with camelCase keys, for example:

    reconciler:
      disableAnnotationUpdate: false
      completedResourceGracePeriod: 10m
    controller:
      workers: 4
      resyncPeriod: 5m
    resources: [taskruns, pipelineruns]
    storageDir: /var/lib/results

Command line flags take precedence over values from the file.
"""

import datetime
from dataclasses import dataclass, field
import logging
import math
import re
from typing import Any

import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "ReconcilerConfig",
    "ControllerConfig",
    "WatcherConfig",
    "parse_duration",
    "format_duration",
]

_LOGGER = logging.getLogger(__name__)

# Deletion of completed runs is opt-in.
DEFAULT_GRACE_PERIOD = datetime.timedelta(0)
DEFAULT_RESYNC_PERIOD = datetime.timedelta(minutes=10)
DEFAULT_WORKERS = 2
DEFAULT_RESOURCES = ["taskruns", "pipelineruns"]
DEFAULT_STORAGE_DIR = "results"

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: Any) -> datetime.timedelta:
    """Parse a Go style duration such as `1h30m`, `-1s` or `0`.

    A bare number is interpreted as seconds.
    """
    if isinstance(value, datetime.timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InputException(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InputException(f"Invalid duration: {value!r}")
        return datetime.timedelta(seconds=value)

    text = value.strip()
    sign = 1.0
    if text and text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]
    if not text:
        raise InputException(f"Invalid duration: {value!r}")
    if _NUMBER.fullmatch(text):
        return datetime.timedelta(seconds=sign * float(text))

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise InputException(f"Invalid duration: {value!r}")
    return datetime.timedelta(seconds=sign * total)


def format_duration(value: datetime.timedelta) -> str:
    """Format a duration so that `parse_duration` reads it back."""
    seconds = value.total_seconds()
    if seconds.is_integer():
        return f"{int(seconds)}s"
    return f"{seconds}s"


@dataclass
class ReconcilerConfig(DataClassDictMixin):
    """Configuration for the Reconciler."""

    disable_annotation_update: bool = field(
        default=False, metadata=field_options(alias="disableAnnotationUpdate")
    )
    """Archive runs without writing correlation annotations back to them."""

    completed_resource_grace_period: datetime.timedelta = field(
        default=DEFAULT_GRACE_PERIOD,
        metadata=field_options(
            alias="completedResourceGracePeriod",
            deserialize=parse_duration,
            serialize=format_duration,
        ),
    )
    """How long a completed, unowned run is kept before deletion.

    Zero disables deletion and a negative value deletes on completion.
    """

    @property
    def cleanup_enabled(self) -> bool:
        """Return True if completed runs are ever deleted."""
        return self.completed_resource_grace_period != datetime.timedelta(0)

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class ControllerConfig(DataClassDictMixin):
    """Configuration for the Controller work queue."""

    workers: int = DEFAULT_WORKERS
    """Number of keys reconciled concurrently."""

    resync_period: datetime.timedelta = field(
        default=DEFAULT_RESYNC_PERIOD,
        metadata=field_options(
            alias="resyncPeriod",
            deserialize=parse_duration,
            serialize=format_duration,
        ),
    )
    """How often every known key is re-enqueued."""

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class WatcherConfig(DataClassDictMixin):
    """Top level configuration for the `watch` command."""

    reconciler: ReconcilerConfig = field(default_factory=ReconcilerConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)

    resources: list[str] = field(default_factory=lambda: list(DEFAULT_RESOURCES))
    """Resource types to watch, e.g. `taskruns`."""

    namespace: str | None = None
    """Namespace to watch, or all namespaces when unset."""

    storage_dir: str = field(
        default=DEFAULT_STORAGE_DIR, metadata=field_options(alias="storageDir")
    )
    """Directory holding the archived Results and Records."""

    kube_context: str | None = field(
        default=None, metadata=field_options(alias="kubeContext")
    )
    """The kubeconfig context passed to kubectl."""

    @classmethod
    def parse_yaml(cls, content: str) -> "WatcherConfig":
        """Parse the configuration from a YAML document."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Configuration is not valid YAML: {err}") from err
        if doc is None:
            doc = {}
        if not isinstance(doc, dict):
            raise InputException(
                f"Configuration must be a mapping but was {type(doc).__name__}"
            )
        try:
            config = cls.from_dict(doc)
        except (InvalidFieldValue, MissingField, ValueError, TypeError) as err:
            raise InputException(f"Invalid configuration: {err}") from err
        _LOGGER.debug("Loaded configuration %s", config)
        return config

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True
