"""Exceptions related to results-watcher."""

__all__ = [
    "WatcherException",
    "ObjectNotFoundError",
    "RetryableError",
    "ConflictError",
    "StorageException",
    "CommandException",
    "InputException",
    "InvalidKeyError",
    "ConversionError",
    "InvalidNameError",
    "is_retryable",
]


class WatcherException(Exception):
    """Generic base exception used for this library."""


class ObjectNotFoundError(WatcherException):
    """Raised when a resource or record does not exist."""


class RetryableError(WatcherException):
    """Raised for transient failures that should be retried with backoff."""


class ConflictError(RetryableError):
    """Raised when an update is made against a stale resourceVersion."""


class StorageException(RetryableError):
    """Raised when the results storage service fails a request."""


class CommandException(RetryableError):
    """Raised when there is a failure running a subcommand."""


class InputException(WatcherException):
    """Raised when an input is malformed and retrying cannot help."""


class InvalidKeyError(InputException):
    """Raised when a reconcile key is not of the form namespace/name."""


class ConversionError(InputException):
    """Raised when a resource can never be archived as-is."""

    def __init__(self, resource_name: str, message: str) -> None:
        super().__init__(f"Unable to convert {resource_name}: {message}")
        self.resource_name = resource_name
        self.message = message


class InvalidNameError(InputException):
    """Raised when a Result or Record name is malformed."""


def is_retryable(err: BaseException) -> bool:
    """Return True if the error should be requeued rather than dropped."""
    if isinstance(err, InputException):
        return False
    # Unknown failures are treated as transient.
    return isinstance(err, Exception)
