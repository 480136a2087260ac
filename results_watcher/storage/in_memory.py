"""Module for an in memory results storage service."""

import asyncio
import copy
import datetime
import logging

from results_watcher.exceptions import ObjectNotFoundError
from results_watcher.names import (
    RecordName,
    ResultName,
    parse_record_name,
    parse_result_name,
)

from .model import Record, RecordData, Result
from .store import ResultsClient

_LOGGER = logging.getLogger(__name__)


class InMemoryResultsClient(ResultsClient):
    """In-memory implementation of the ResultsClient interface.

    Objects are copied on the way in and out so callers can not mutate the
    stored state.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryResultsClient."""
        self._results: dict[ResultName, Result] = {}
        self._records: dict[RecordName, Record] = {}
        self._lock = asyncio.Lock()
        self.upsert_count = 0

    @property
    def num_records(self) -> int:
        """Number of Records held by the service."""
        return len(self._records)

    async def upsert_result(
        self, name: str, annotations: dict[str, str] | None = None
    ) -> Result:
        """Create the Result if it does not exist and return it."""
        result_name = parse_result_name(name)
        async with self._lock:
            return copy.deepcopy(self._upsert_result(result_name, annotations))

    def _upsert_result(
        self, result_name: ResultName, annotations: dict[str, str] | None
    ) -> Result:
        now = datetime.datetime.now(datetime.UTC)
        if (result := self._results.get(result_name)) is None:
            _LOGGER.debug("Creating Result %s", result_name)
            result = Result(name=str(result_name), create_time=now, update_time=now)
            self._results[result_name] = result
        if annotations:
            result.annotations.update(annotations)
            result.update_time = now
        return result

    async def upsert_record(self, name: str, data: RecordData) -> Record:
        """Create the Record, or overwrite the data of the existing Record."""
        record_name = parse_record_name(name)
        async with self._lock:
            self._upsert_result(record_name.parent, None)
            now = datetime.datetime.now(datetime.UTC)
            if (record := self._records.get(record_name)) is None:
                _LOGGER.debug("Creating Record %s", record_name)
                record = Record(
                    name=str(record_name),
                    data=copy.deepcopy(data),
                    create_time=now,
                    update_time=now,
                )
                self._records[record_name] = record
            else:
                _LOGGER.debug("Updating Record %s", record_name)
                record.data = copy.deepcopy(data)
                record.update_time = now
            self.upsert_count += 1
            return copy.deepcopy(record)

    async def get_result(self, name: str) -> Result:
        """Return the Result with the given name."""
        if (result := self._results.get(parse_result_name(name))) is None:
            raise ObjectNotFoundError(f"Result {name} not found")
        return copy.deepcopy(result)

    async def get_record(self, name: str) -> Record:
        """Return the Record with the given name."""
        if (record := self._records.get(parse_record_name(name))) is None:
            raise ObjectNotFoundError(f"Record {name} not found")
        return copy.deepcopy(record)

    async def list_records(self, parent: str) -> list[Record]:
        """List the Records of a Result, sorted by name."""
        result_name = parse_result_name(parent)
        return [
            copy.deepcopy(record)
            for record_name, record in sorted(self._records.items())
            if record_name.namespace == result_name.namespace
            and (result_name.is_wildcard or record_name.parent == result_name)
        ]
