from __future__ import annotations

import asyncio
import shlex
from typing import Set

from voicegate.core.logger import get_logger

logger = get_logger("wait")


class NotificationSound:
    """Plays a short chime through an external command, best effort."""

    def __init__(self, command: str | None, enabled: bool = True) -> None:
        self.enabled = enabled
        try:
            self._argv = shlex.split(command) if command else []
        except ValueError:
            logger.warning("Invalid notification sound command: %r", command)
            self._argv = []
        self._tasks: Set[asyncio.Task] = set()

    def play(self) -> None:
        """Start the chime in the background and return immediately."""
        if not self.enabled or not self._argv:
            return
        task = asyncio.get_running_loop().create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except Exception as exc:
            logger.warning("Notification sound failed: %s", exc)
