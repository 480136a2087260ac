"""Command line tool for archiving runs and querying the archive."""

import argparse
import asyncio
import logging
import sys
import traceback

from results_watcher.exceptions import WatcherException
from . import reconcile, records, watch

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Archive CI/CD runs from a cluster into durable storage.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    watch.WatchAction.register(subparsers)
    reconcile.ReconcileAction.register(subparsers)
    records.RecordsAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Results-watcher command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except WatcherException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("results-watcher error: ", err, file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
