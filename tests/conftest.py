"""Shared fixtures for results-watcher tests."""

import datetime
from typing import Any

import pytest

from results_watcher.clock import FakeClock
from results_watcher.cluster import InMemoryResourceClient
from results_watcher.storage import InMemoryResultsClient

NOW = datetime.datetime(2024, 5, 1, 12, 0, 0, tzinfo=datetime.UTC)
COMPLETION_TIME = NOW - datetime.timedelta(hours=1)


def timestamp(when: datetime.datetime) -> str:
    """Format a time the way the API server does."""
    return when.strftime("%Y-%m-%dT%H:%M:%SZ")


def succeeded() -> dict[str, Any]:
    """Return a Succeeded status condition."""
    return {
        "type": "Succeeded",
        "status": "True",
        "lastTransitionTime": timestamp(COMPLETION_TIME),
    }


@pytest.fixture(name="task_run")
def task_run_fixture() -> dict[str, Any]:
    """A completed, unowned TaskRun."""
    return {
        "apiVersion": "tekton.dev/v1beta1",
        "kind": "TaskRun",
        "metadata": {
            "name": "taskrun",
            "namespace": "ns",
            "annotations": {"demo": "demo"},
            "uid": "12345",
        },
        "spec": {
            "taskSpec": {
                "steps": [{"script": "echo hello world!"}],
            },
        },
        "status": {
            "conditions": [succeeded()],
        },
    }


@pytest.fixture(name="pipeline_run")
def pipeline_run_fixture() -> dict[str, Any]:
    """A completed, unowned PipelineRun."""
    return {
        "apiVersion": "tekton.dev/v1beta1",
        "kind": "PipelineRun",
        "metadata": {
            "name": "pipelinerun",
            "namespace": "ns",
            "annotations": {"demo": "demo"},
            "uid": "67890",
        },
        "spec": {
            "pipelineSpec": {
                "tasks": [
                    {
                        "name": "task",
                        "taskSpec": {"steps": [{"script": "echo hello world!"}]},
                    }
                ],
            },
        },
        "status": {
            "conditions": [succeeded()],
            "childReferences": [{"name": "pipelinerun-task", "kind": "TaskRun"}],
        },
    }


@pytest.fixture(name="run_obj", params=["task_run", "pipeline_run"])
def run_obj_fixture(request: pytest.FixtureRequest) -> dict[str, Any]:
    """Each supported kind of run."""
    return request.getfixturevalue(request.param)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    """A clock that only moves when advanced."""
    return FakeClock(NOW)


@pytest.fixture(name="resources")
def resources_fixture() -> InMemoryResourceClient:
    """An empty fake cluster."""
    return InMemoryResourceClient()


@pytest.fixture(name="results")
def results_fixture() -> InMemoryResultsClient:
    """An empty results storage service."""
    return InMemoryResultsClient()


@pytest.fixture(name="now")
def now_fixture() -> datetime.datetime:
    """The time the fake clock starts at."""
    return NOW


@pytest.fixture(name="completion_time")
def completion_time_fixture() -> datetime.datetime:
    """When the runs in the fixtures completed."""
    return COMPLETION_TIME
