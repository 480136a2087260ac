"""Tests for the results-watcher `records` command."""

import json
from pathlib import Path

import pytest
import yaml

from results_watcher.exceptions import CommandException

from . import run_command


async def test_list_records(storage_dir: Path) -> None:
    """Test listing the Records of a Result as a table."""
    result = await run_command(
        ["records", "list", "ns/results/a", "--storage-dir", str(storage_dir)]
    )
    lines = result.splitlines()
    assert lines[0].split() == ["NAME", "TYPE", "UPDATED"]
    assert [line.split()[:2] for line in lines[1:]] == [
        ["ns/results/a/records/1", "tekton.dev/v1beta1.TaskRun"],
        ["ns/results/a/records/2", "tekton.dev/v1beta1.PipelineRun"],
    ]


async def test_list_namespace(storage_dir: Path) -> None:
    """Test listing every Record in a namespace."""
    result = await run_command(
        ["records", "list", "ns/results/-", "--storage-dir", str(storage_dir)]
    )
    names = [line.split()[0] for line in result.splitlines()[1:]]
    assert names == [
        "ns/results/a/records/1",
        "ns/results/a/records/2",
        "ns/results/b/records/3",
    ]


async def test_list_empty(tmp_path: Path) -> None:
    """Test listing a Result with no Records."""
    result = await run_command(
        ["records", "list", "ns/results/-", "--storage-dir", str(tmp_path)]
    )
    assert result == "No Records found in ns/results/-\n"


async def test_list_yaml(storage_dir: Path) -> None:
    """Test listing Records as yaml documents."""
    result = await run_command(
        [
            "records",
            "list",
            "ns/results/b",
            "--storage-dir",
            str(storage_dir),
            "-o",
            "yaml",
        ]
    )
    docs = list(yaml.safe_load_all(result))
    assert len(docs) == 1
    assert docs[0]["name"] == "ns/results/b/records/3"
    assert docs[0]["data"] == {
        "type": "tekton.dev/v1beta1.TaskRun",
        "value": {"kind": "TaskRun", "metadata": {"name": "task-3"}},
    }
    assert "createTime" in docs[0]


async def test_get_record(storage_dir: Path) -> None:
    """Test printing a single Record as json."""
    result = await run_command(
        [
            "records",
            "get",
            "ns/results/a/records/2",
            "--storage-dir",
            str(storage_dir),
            "-o",
            "json",
        ]
    )
    records = json.loads(result)
    assert [record["name"] for record in records] == ["ns/results/a/records/2"]
    assert records[0]["data"]["type"] == "tekton.dev/v1beta1.PipelineRun"


@pytest.mark.parametrize(
    ("args", "message"),
    [
        (["records", "get", "ns/results/a/records/9"], "not found"),
        (["records", "get", "ns/results/a"], "Invalid Record name"),
        (["records", "list", "ns"], "Invalid Result name"),
    ],
)
async def test_records_error(storage_dir: Path, args: list[str], message: str) -> None:
    """Test errors are reported and exit non-zero."""
    with pytest.raises(CommandException, match=message):
        await run_command(args + ["--storage-dir", str(storage_dir)])
