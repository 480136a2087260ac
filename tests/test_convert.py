"""Tests for converting runs into Record payloads."""

from typing import Any

import pytest

from results_watcher.convert import to_record_data
from results_watcher.exceptions import ConversionError
from results_watcher.resource import adapt
from results_watcher.storage import RecordData


def test_to_record_data(run_obj: dict[str, Any]) -> None:
    """Test the payload carries the type and the whole object."""
    data = to_record_data(adapt(run_obj))
    assert data == RecordData(
        type=f"tekton.dev/v1beta1.{run_obj['kind']}", value=run_obj
    )


def test_to_record_data_deterministic(task_run: dict[str, Any]) -> None:
    """Test converting the same snapshot twice gives equal payloads."""
    run = adapt(task_run)
    assert to_record_data(run) == to_record_data(run)


def test_to_record_data_copies(task_run: dict[str, Any]) -> None:
    """Test the payload does not alias the live object."""
    data = to_record_data(adapt(task_run))
    data.value["metadata"]["name"] = "changed"
    assert task_run["metadata"]["name"] == "taskrun"


def test_strips_managed_fields(task_run: dict[str, Any]) -> None:
    """Test server bookkeeping is not archived."""
    task_run["metadata"]["managedFields"] = [{"manager": "controller"}]
    data = to_record_data(adapt(task_run))
    assert "managedFields" not in data.value["metadata"]
    assert "managedFields" in task_run["metadata"]


def test_missing_api_version(task_run: dict[str, Any]) -> None:
    """Test an object without an apiVersion can not be archived."""
    del task_run["apiVersion"]
    with pytest.raises(ConversionError, match="missing apiVersion"):
        to_record_data(adapt(task_run))


def test_not_serializable(task_run: dict[str, Any]) -> None:
    """Test an object that can not be encoded as JSON."""
    task_run["spec"]["params"] = {1, 2}
    with pytest.raises(ConversionError, match="not serializable"):
        to_record_data(adapt(task_run))
