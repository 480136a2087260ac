"""Tests for the results storage clients."""

from pathlib import Path

import pytest

from results_watcher.exceptions import (
    InvalidNameError,
    ObjectNotFoundError,
    StorageException,
)
from results_watcher.storage import (
    FileResultsClient,
    InMemoryResultsClient,
    RecordData,
    ResultsClient,
)

DATA = RecordData(type="tekton.dev/v1beta1.TaskRun", value={"kind": "TaskRun"})


@pytest.fixture(name="client", params=["memory", "file"])
def client_fixture(request: pytest.FixtureRequest, tmp_path: Path) -> ResultsClient:
    """Each implementation of the results storage service."""
    if request.param == "memory":
        return InMemoryResultsClient()
    return FileResultsClient(tmp_path)


async def test_upsert_result(client: ResultsClient) -> None:
    """Test creating a Result is idempotent."""
    result = await client.upsert_result("ns/results/a")
    assert result.name == "ns/results/a"
    assert result.create_time is not None

    again = await client.upsert_result("ns/results/a")
    assert again.create_time == result.create_time
    assert await client.get_result("ns/results/a") == again


async def test_upsert_result_annotations(client: ResultsClient) -> None:
    """Test annotations are merged into an existing Result."""
    await client.upsert_result("ns/results/a", {"one": "1"})
    result = await client.upsert_result("ns/results/a", {"two": "2"})
    assert result.annotations == {"one": "1", "two": "2"}


async def test_upsert_record(client: ResultsClient) -> None:
    """Test creating and then overwriting a Record."""
    record = await client.upsert_record("ns/results/a/records/b", DATA)
    assert record.name == "ns/results/a/records/b"
    assert record.data == DATA

    # The parent Result is created along with the Record.
    await client.get_result("ns/results/a")

    updated_data = RecordData(type=DATA.type, value={"kind": "TaskRun", "v": 2})
    updated = await client.upsert_record("ns/results/a/records/b", updated_data)
    assert updated.create_time == record.create_time
    assert updated.data == updated_data

    got = await client.get_record("ns/results/a/records/b")
    assert got.data == updated_data


async def test_not_found(client: ResultsClient) -> None:
    """Test reading objects that do not exist."""
    with pytest.raises(ObjectNotFoundError):
        await client.get_result("ns/results/a")
    with pytest.raises(ObjectNotFoundError):
        await client.get_record("ns/results/a/records/b")
    assert await client.list_records("ns/results/a") == []


async def test_invalid_names(client: ResultsClient) -> None:
    """Test malformed names are rejected."""
    with pytest.raises(InvalidNameError):
        await client.upsert_result("ns/a")
    with pytest.raises(InvalidNameError):
        await client.upsert_record("ns/results/a", DATA)
    with pytest.raises(InvalidNameError):
        await client.list_records("ns/results/a/records/b")


async def test_list_records(client: ResultsClient) -> None:
    """Test listing the Records of a Result and of a namespace."""
    for name in (
        "ns/results/b/records/2",
        "ns/results/a/records/1",
        "ns/results/b/records/1",
        "other/results/a/records/1",
    ):
        await client.upsert_record(name, DATA)

    records = await client.list_records("ns/results/b")
    assert [r.name for r in records] == [
        "ns/results/b/records/1",
        "ns/results/b/records/2",
    ]

    records = await client.list_records("ns/results/-")
    assert [r.name for r in records] == [
        "ns/results/a/records/1",
        "ns/results/b/records/1",
        "ns/results/b/records/2",
    ]


async def test_in_memory_copies() -> None:
    """Test stored Records can not be changed through returned objects."""
    client = InMemoryResultsClient()
    record = await client.upsert_record("ns/results/a/records/b", DATA)
    record.data.value["kind"] = "changed"

    got = await client.get_record("ns/results/a/records/b")
    assert got.data == DATA
    assert client.num_records == 1
    assert client.upsert_count == 1


async def test_file_persistence(tmp_path: Path) -> None:
    """Test Records written by one client are read by another."""
    await FileResultsClient(tmp_path).upsert_record("ns/results/a/records/b", DATA)

    assert (tmp_path / "ns/results/a/result.yaml").exists()
    assert (tmp_path / "ns/results/a/records/b.yaml").exists()
    assert not list(tmp_path.glob("**/*.tmp"))

    record = await FileResultsClient(tmp_path).get_record("ns/results/a/records/b")
    assert record.data == DATA


async def test_file_storage_failure(tmp_path: Path) -> None:
    """Test that filesystem errors are reported as storage failures."""
    root = tmp_path / "root"
    root.write_text("not a directory")
    client = FileResultsClient(root)

    with pytest.raises(StorageException):
        await client.upsert_record("ns/results/a/records/b", DATA)
