"""Results-watcher reconcile action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import sys
from typing import cast

from results_watcher.exceptions import ObjectNotFoundError, WatcherException
from results_watcher.resource import ResourceKey

from . import options

_LOGGER = logging.getLogger(__name__)


class ReconcileAction:
    """Reconcile specific runs once and exit."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "reconcile",
                help="Archive the named runs once",
                description="Reconcile each namespace/name key once and exit.",
            ),
        )
        options.add_reconciler_flags(args)
        args.add_argument(
            "keys",
            nargs="+",
            help="Runs to reconcile, as namespace/name",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        keys: list[str],
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = options.build_config(**kwargs)
        failures = 0
        for binding in options.build_bindings(config):
            for key in keys:
                try:
                    parsed = ResourceKey.parse(key)
                    await binding.resources.get(parsed.namespace, parsed.name)
                    await binding.reconciler.reconcile(key)
                except ObjectNotFoundError:
                    print(f"{binding.resource} {key}: not found, skipped")
                except WatcherException as err:
                    failures += 1
                    print(f"{binding.resource} {key}: {err}", file=sys.stderr)
                else:
                    print(f"{binding.resource} {key}: reconciled")
        if failures:
            raise WatcherException(f"{failures} reconcile(s) failed")
