"""Fixtures for results-watcher tool tests."""

from pathlib import Path

import pytest

from results_watcher.storage import FileResultsClient, RecordData

RECORDS = {
    "ns/results/a/records/1": RecordData(
        type="tekton.dev/v1beta1.TaskRun",
        value={"kind": "TaskRun", "metadata": {"name": "task-1"}},
    ),
    "ns/results/a/records/2": RecordData(
        type="tekton.dev/v1beta1.PipelineRun",
        value={"kind": "PipelineRun", "metadata": {"name": "pipeline"}},
    ),
    "ns/results/b/records/3": RecordData(
        type="tekton.dev/v1beta1.TaskRun",
        value={"kind": "TaskRun", "metadata": {"name": "task-3"}},
    ),
}


@pytest.fixture(name="storage_dir")
async def storage_dir_fixture(tmp_path: Path) -> Path:
    """A storage directory populated with archived Records."""
    client = FileResultsClient(tmp_path)
    for name, data in RECORDS.items():
        await client.upsert_record(name, data)
    return tmp_path
