"""Library for running kubectl and other subprocesses from asyncio.

Commands are run with a bounded level of concurrency so that a burst of
reconciles does not fork an unbounded number of processes.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shlex
import subprocess

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)

MAX_CONCURRENT_COMMANDS = 20
DEFAULT_TIMEOUT = 60.0

_SEM = asyncio.Semaphore(MAX_CONCURRENT_COMMANDS)


# No public API
__all__: list[str] = []


@dataclass
class Command:
    """A subprocess invocation."""

    cmd: list[str]
    """Program and arguments."""

    cwd: Path | None = None
    """Working directory of the subprocess."""

    exc: type[CommandException] = CommandException
    """Exception raised when the subprocess fails or times out."""

    env: dict[str, str] | None = None
    """Environment variables added to the inherited environment."""

    timeout: float = DEFAULT_TIMEOUT
    """Seconds to wait for the subprocess to exit."""

    def __str__(self) -> str:
        """Render the command as a shell string for logs and errors."""
        args = " ".join(shlex.quote(arg) for arg in self.cmd)
        return f"({self.cwd}) {args}" if self.cwd else args

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the subprocess to completion, returning stdout.

        Raises:
            CommandException: (or the configured `exc`) when the process exits
                non-zero or does not exit within `timeout`.
        """
        _LOGGER.debug("Running command: %s", self)
        proc = await asyncio.create_subprocess_exec(
            *self.cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=self.cwd,
            env={
                **os.environ,
                **(self.env if self.env else {}),
            },
        )
        try:
            out, err = await asyncio.wait_for(proc.communicate(stdin), self.timeout)
        except TimeoutError as timeout_err:
            proc.kill()
            await proc.wait()
            raise self.exc(
                f"Command '{self}' timed out after {self.timeout}s"
            ) from timeout_err
        if proc.returncode:
            lines = [f"Command '{self}' failed with return code {proc.returncode}"]
            for stream in (out, err):
                if stream:
                    lines.append(stream.decode("utf-8", errors="replace"))
            message = "\n".join(lines)
            _LOGGER.debug(message)
            raise self.exc(message)
        return out


async def run_piped(cmds: Sequence[Command], stdin: bytes | None = None) -> str:
    """Run commands with the stdout of each fed to the next, returning the last."""
    out = stdin or b""
    async with _SEM:
        for cmd in cmds:
            out = await cmd.run(out if out else None)
    return out.decode("utf-8")


async def run(cmd: Command, stdin: bytes | None = None) -> str:
    """Run the command and return its stdout."""
    return await run_piped([cmd], stdin)
