"""Results-watcher watch action."""

import asyncio
import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from results_watcher.controller import Controller

from . import options

_LOGGER = logging.getLogger(__name__)


class WatchAction:
    """Run controllers that archive runs until interrupted."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "watch",
                help="Archive runs from the cluster continuously",
                description=(
                    "Watch runs in the cluster, archive them into the results "
                    "storage directory and clean up completed runs."
                ),
            ),
        )
        options.add_reconciler_flags(args)
        args.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Number of runs reconciled concurrently per resource type",
        )
        args.add_argument(
            "--resync-period",
            type=options.duration_arg,
            default=None,
            help="How often to list all runs from the cluster (e.g. 10m)",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = options.build_config(**kwargs)
        controllers: list[Controller] = []
        resyncs: list[asyncio.Task[None]] = []
        for binding in options.build_bindings(config):
            controller = Controller(
                binding.resource, binding.reconciler, config.controller
            )
            controller.start()
            controllers.append(controller)
            resyncs.append(
                asyncio.create_task(
                    controller.run_resync(binding.resources, config.namespace),
                    name=f"{binding.resource} resync",
                )
            )
        _LOGGER.info(
            "Watching %s, archiving to %s", config.resources, config.storage_dir
        )
        try:
            await asyncio.gather(*resyncs)
        finally:
            for task in resyncs:
                task.cancel()
            for controller in controllers:
                await controller.close()
