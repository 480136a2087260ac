"""Test helpers for results-watcher tools."""

from results_watcher.command import Command, run

RESULTS_WATCHER_BIN = "results-watcher"


async def run_command(args: list[str], env: dict[str, str] | None = None) -> str:
    return await run(Command([RESULTS_WATCHER_BIN] + args, env=env))
