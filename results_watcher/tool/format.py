"""Output formatting for the query commands."""

from abc import ABC, abstractmethod
from collections.abc import Generator
import json
import sys
from typing import Any, TextIO

import yaml

COLUMN_GAP = 4


def format_columns(
    headers: list[str], rows: list[list[str]]
) -> Generator[str, None, None]:
    """Yield the header and rows aligned into left justified columns."""
    if not headers:
        return
    table = [headers] + rows
    widths = [
        max(len(str(row[col])) for row in table) + COLUMN_GAP
        for col in range(len(headers))
    ]
    for row in table:
        yield "".join(
            str(value).ljust(width) for value, width in zip(row, widths)
        ).rstrip()


class StructFormatter(ABC):
    """Renders a list of objects as lines of text."""

    @abstractmethod
    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Yield the output lines for the objects."""

    def print(self, data: list[dict[str, Any]], file: TextIO = sys.stdout) -> None:
        """Write the output lines for the objects."""
        for line in self.format(data):
            print(line, file=file)


class PrintFormatter(StructFormatter):
    """Human readable table, one object per row."""

    def __init__(self, keys: list[str] | None = None) -> None:
        """Initialize the PrintFormatter with the keys used as columns.

        When no keys are given the keys of the first object are used.
        """
        self._keys = keys

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        """Yield the table header and rows."""
        if not data:
            return
        keys = self._keys if self._keys is not None else list(data[0])
        rows = [[str(obj.get(key, "")) for key in keys] for obj in data]
        yield from format_columns([key.upper() for key in keys], rows)


class YamlFormatter(StructFormatter):
    """A stream of YAML documents, one per object."""

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        content = yaml.dump_all(data, sort_keys=False, explicit_start=True)
        yield from content.rstrip("\n").split("\n")


class JsonFormatter(StructFormatter):
    """A JSON array of the objects."""

    def format(self, data: list[dict[str, Any]]) -> Generator[str, None, None]:
        yield from json.dumps(data, indent=4).split("\n")


FORMATTERS: dict[str, type[StructFormatter]] = {
    "table": PrintFormatter,
    "yaml": YamlFormatter,
    "json": JsonFormatter,
}
