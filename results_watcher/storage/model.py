"""Archived objects held by the results storage service."""

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from mashumaro import DataClassDictMixin, field_options
from mashumaro.codecs.yaml import yaml_decode, yaml_encode
from mashumaro.config import BaseConfig

__all__ = [
    "RecordData",
    "Record",
    "Result",
]


@dataclass
class BaseModel(DataClassDictMixin):
    """Base class for all stored objects."""

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    @classmethod
    def parse_yaml(cls, content: str) -> Any:
        """Parse a serialized object."""
        return yaml_decode(content, cls)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class RecordData(BaseModel):
    """The canonical archival payload of a run."""

    type: str
    """Identifies the shape of `value`, e.g. `tekton.dev/v1beta1.TaskRun`."""

    value: dict[str, Any]
    """The archived object."""


@dataclass
class Record(BaseModel):
    """The archived copy of a single run."""

    name: str
    """Name of the form `<namespace>/results/<id>/records/<id>`."""

    data: RecordData
    """The latest archived payload."""

    create_time: Optional[datetime.datetime] = field(
        metadata=field_options(alias="createTime"), default=None
    )
    update_time: Optional[datetime.datetime] = field(
        metadata=field_options(alias="updateTime"), default=None
    )


@dataclass
class Result(BaseModel):
    """A grouping of Records."""

    name: str
    """Name of the form `<namespace>/results/<id>`."""

    annotations: dict[str, str] = field(default_factory=dict)

    create_time: Optional[datetime.datetime] = field(
        metadata=field_options(alias="createTime"), default=None
    )
    update_time: Optional[datetime.datetime] = field(
        metadata=field_options(alias="updateTime"), default=None
    )
