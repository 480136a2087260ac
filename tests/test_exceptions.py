"""Tests for the exception taxonomy."""

import asyncio

import pytest

from results_watcher.exceptions import (
    CommandException,
    ConflictError,
    ConversionError,
    InputException,
    InvalidKeyError,
    InvalidNameError,
    ObjectNotFoundError,
    StorageException,
    is_retryable,
)


@pytest.mark.parametrize(
    ("err", "expected"),
    [
        (ConflictError("stale"), True),
        (StorageException("unavailable"), True),
        (CommandException("failed"), True),
        (ObjectNotFoundError("gone"), True),
        (RuntimeError("unexpected"), True),
        (InputException("bad"), False),
        (InvalidKeyError("bad"), False),
        (InvalidNameError("bad"), False),
        (ConversionError("TaskRun/ns/a", "bad"), False),
        (asyncio.CancelledError(), False),
    ],
)
def test_is_retryable(err: BaseException, expected: bool) -> None:
    """Test classification of errors for requeue."""
    assert is_retryable(err) == expected


def test_conversion_error() -> None:
    """Test the conversion error message."""
    err = ConversionError("TaskRun/ns/a", "missing kind")
    assert str(err) == "Unable to convert TaskRun/ns/a: missing kind"
    assert err.resource_name == "TaskRun/ns/a"
    assert err.message == "missing kind"
