"""
Subprocess-backed privileged shell collaborator.

Runs diagnostic commands through an argument-vector prefix (``sh -c`` by
default, ``su -c`` on rooted devices) using asyncio subprocesses.  Output
follows the shell contract: stdout text on success, an ``Error:`` string on
a non-zero exit, an ``Exception:`` string when the process cannot be
spawned.  The caller bounds each call with a timeout; a cancelled call
kills the child process.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-015)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence

logger = logging.getLogger(__name__)


class SubprocessShell:
    """Shell executor running commands as local subprocesses.

    Args:
        prefix: Argument vector the command string is appended to.
    """

    def __init__(self, prefix: Sequence[str] = ("sh", "-c")) -> None:
        self._prefix = tuple(prefix)

    def is_available(self) -> bool:
        """True when the prefix executable can be found on PATH."""
        return shutil.which(self._prefix[0]) is not None

    async def execute(self, command: str) -> str:
        """Run *command* and return its output or an error string."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._prefix,
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return f"Exception: {exc}"

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            logger.debug("Command exited with %s: %s", proc.returncode, detail)
            return f"Error: exit status {proc.returncode}: {detail}"
        return stdout.decode(errors="replace")
