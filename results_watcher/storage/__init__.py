"""
The storage module holds the client side of the durable results service that
runs are archived into.

- `ResultsClient` is the abstract contract consumed by the reconciler.
- `InMemoryResultsClient` is used by tests and dry runs.
- `FileResultsClient` persists Results and Records as YAML under a directory.
"""

from .model import Record, RecordData, Result
from .store import ResultsClient
from .in_memory import InMemoryResultsClient
from .file import FileResultsClient

__all__ = [
    "ResultsClient",
    "InMemoryResultsClient",
    "FileResultsClient",
    "Record",
    "RecordData",
    "Result",
]
