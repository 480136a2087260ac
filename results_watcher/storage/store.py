"""Client contract for the results storage service."""

from abc import ABC, abstractmethod

from .model import Record, RecordData, Result


class ResultsClient(ABC):
    """Abstract client for the durable results storage service.

    Records are addressed by stable names (see `results_watcher.names`).
    Upserts are idempotent: calling `upsert_record` repeatedly with the same
    name updates a single Record and never creates a second one.
    """

    @abstractmethod
    async def upsert_result(
        self, name: str, annotations: dict[str, str] | None = None
    ) -> Result:
        """Create the Result if it does not exist and return it."""

    @abstractmethod
    async def upsert_record(self, name: str, data: RecordData) -> Record:
        """Create the Record, or overwrite the data of the existing Record.

        The parent Result is created if it does not already exist.

        Raises:
            InvalidNameError: If the name is not a valid Record name.
            StorageException: If the service could not store the Record.
        """

    @abstractmethod
    async def get_result(self, name: str) -> Result:
        """Return the Result with the given name.

        Raises:
            ObjectNotFoundError: If the Result does not exist.
        """

    @abstractmethod
    async def get_record(self, name: str) -> Record:
        """Return the Record with the given name.

        Raises:
            ObjectNotFoundError: If the Record does not exist.
        """

    @abstractmethod
    async def list_records(self, parent: str) -> list[Record]:
        """List the Records of a Result, sorted by name.

        A parent of `<namespace>/results/-` lists all Records in the namespace.
        """
