"""Results-watcher records action for querying archived Records."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import Any, cast

from results_watcher.config import DEFAULT_STORAGE_DIR
from results_watcher.storage import FileResultsClient, Record

from .format import FORMATTERS, PrintFormatter
from . import options

_LOGGER = logging.getLogger(__name__)

TABLE_COLS = ["name", "type", "updated"]


def _client(storage_dir: pathlib.Path | None) -> FileResultsClient:
    return FileResultsClient(storage_dir or pathlib.Path(DEFAULT_STORAGE_DIR))


def _add_output_flag(args: ArgumentParser) -> None:
    args.add_argument(
        "--output",
        "-o",
        choices=sorted(FORMATTERS),
        default="table",
        help="Output format of the command",
    )


def _summary(record: Record) -> dict[str, Any]:
    return {
        "name": record.name,
        "type": record.data.type,
        "updated": record.update_time.isoformat() if record.update_time else "",
    }


def _print(records: list[Record], output: str) -> None:
    if output == "table":
        PrintFormatter(TABLE_COLS).print([_summary(record) for record in records])
        return
    formatter = FORMATTERS[output]()
    formatter.print([record.to_dict() for record in records])


class RecordsListAction:
    """List the Records of a Result."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "list",
                help="List Records",
                description=(
                    "List the Records of a Result. Use <namespace>/results/- "
                    "to list every Record in a namespace."
                ),
            ),
        )
        args.add_argument(
            "parent",
            help="Parent Result name, e.g. default/results/-",
        )
        options.add_storage_flags(args)
        _add_output_flag(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        parent: str,
        output: str,
        storage_dir: pathlib.Path | None = None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        records = await _client(storage_dir).list_records(parent)
        if not records and output == "table":
            print(f"No Records found in {parent}")
            return
        _print(records, output)


class RecordsGetAction:
    """Print a single Record."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Get a Record",
                description="Print the archived Record with the given name.",
            ),
        )
        args.add_argument(
            "name",
            help="Record name, e.g. default/results/<id>/records/<id>",
        )
        options.add_storage_flags(args)
        _add_output_flag(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        name: str,
        output: str,
        storage_dir: pathlib.Path | None = None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        record = await _client(storage_dir).get_record(name)
        _print([record], output)


class RecordsAction:
    """Command sub-group for querying Records."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "records",
                help="Query archived Records",
                description="Command sub-group for querying Records",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        RecordsListAction.register(subcmds)
        RecordsGetAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
