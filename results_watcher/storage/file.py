"""Module for a results storage service backed by a local directory.

The directory layout mirrors the resource names:

    <root>/<namespace>/results/<result-id>/result.yaml
    <root>/<namespace>/results/<result-id>/records/<record-id>.yaml
"""

import asyncio
import datetime
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from results_watcher.exceptions import ObjectNotFoundError, StorageException
from results_watcher.names import (
    RecordName,
    ResultName,
    parse_record_name,
    parse_result_name,
)

from .model import Record, RecordData, Result
from .store import ResultsClient

_LOGGER = logging.getLogger(__name__)

RESULT_FILE = "result.yaml"
RECORDS_DIR = "records"
SUFFIX = ".yaml"


class FileResultsClient(ResultsClient):
    """Stores Results and Records as YAML files under a root directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the FileResultsClient rooted at the given directory."""
        self._root = root
        self._lock = asyncio.Lock()

    def _result_dir(self, name: ResultName) -> Path:
        return self._root / name.namespace / "results" / name.result_id

    def _result_path(self, name: ResultName) -> Path:
        return self._result_dir(name) / RESULT_FILE

    def _record_path(self, name: RecordName) -> Path:
        return self._result_dir(name.parent) / RECORDS_DIR / f"{name.record_id}{SUFFIX}"

    async def _read(self, path: Path) -> str | None:
        try:
            async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as err:
            raise StorageException(f"Failed to read {path}: {err}") from err

    async def _write(self, path: Path, content: str) -> None:
        """Write the file contents, replacing any existing file in one step."""
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as err:
            raise StorageException(f"Failed to write {path}: {err}") from err

    async def _load_result(self, name: ResultName) -> Result | None:
        if (content := await self._read(self._result_path(name))) is None:
            return None
        return Result.parse_yaml(content)

    async def _load_record(self, path: Path) -> Record | None:
        if (content := await self._read(path)) is None:
            return None
        return Record.parse_yaml(content)

    async def _upsert_result(
        self, name: ResultName, annotations: dict[str, str] | None
    ) -> Result:
        now = datetime.datetime.now(datetime.UTC)
        result = await self._load_result(name)
        if result is None:
            _LOGGER.debug("Creating Result %s", name)
            result = Result(name=str(name), create_time=now, update_time=now)
        elif not annotations:
            return result
        if annotations:
            result.annotations.update(annotations)
            result.update_time = now
        await self._write(self._result_path(name), result.yaml())
        return result

    async def upsert_result(
        self, name: str, annotations: dict[str, str] | None = None
    ) -> Result:
        """Create the Result if it does not exist and return it."""
        result_name = parse_result_name(name)
        async with self._lock:
            return await self._upsert_result(result_name, annotations)

    async def upsert_record(self, name: str, data: RecordData) -> Record:
        """Create the Record, or overwrite the data of the existing Record."""
        record_name = parse_record_name(name)
        path = self._record_path(record_name)
        async with self._lock:
            await self._upsert_result(record_name.parent, None)
            now = datetime.datetime.now(datetime.UTC)
            if (record := await self._load_record(path)) is None:
                _LOGGER.debug("Creating Record %s", record_name)
                record = Record(
                    name=str(record_name), data=data, create_time=now, update_time=now
                )
            else:
                _LOGGER.debug("Updating Record %s", record_name)
                record.data = data
                record.update_time = now
            await self._write(path, record.yaml())
        return record

    async def get_result(self, name: str) -> Result:
        """Return the Result with the given name."""
        if (result := await self._load_result(parse_result_name(name))) is None:
            raise ObjectNotFoundError(f"Result {name} not found")
        return result

    async def get_record(self, name: str) -> Record:
        """Return the Record with the given name."""
        path = self._record_path(parse_record_name(name))
        if (record := await self._load_record(path)) is None:
            raise ObjectNotFoundError(f"Record {name} not found")
        return record

    async def _list_dir(self, path: Path) -> list[str]:
        try:
            return sorted(await aiofiles.os.listdir(path))
        except FileNotFoundError:
            return []
        except OSError as err:
            raise StorageException(f"Failed to list {path}: {err}") from err

    async def list_records(self, parent: str) -> list[Record]:
        """List the Records of a Result, sorted by name."""
        result_name = parse_result_name(parent)
        if result_name.is_wildcard:
            namespace_dir = self._root / result_name.namespace / "results"
            result_ids = await self._list_dir(namespace_dir)
        else:
            result_ids = [result_name.result_id]
        records: list[Record] = []
        for result_id in result_ids:
            records_dir = (
                self._result_dir(ResultName(result_name.namespace, result_id))
                / RECORDS_DIR
            )
            for filename in await self._list_dir(records_dir):
                if not filename.endswith(SUFFIX):
                    continue
                record = await self._load_record(records_dir / filename)
                if record is not None:
                    records.append(record)
        return sorted(records, key=lambda record: record.name)
