"""Detached background screening.

The webhook caller is acknowledged before screening starts, so each accepted
message runs as its own asyncio task on the server loop. The relay holds a
reference to every task until it finishes and can drain them at shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from tonewatch.core.models import InboundMessage

LOGGER = logging.getLogger(__name__)


class MessageHandler(Protocol):
    async def handle(self, message: InboundMessage) -> object:
        ...


class BackgroundRelay:
    """Spawns one detached task per accepted message."""

    def __init__(self, handler: MessageHandler) -> None:
        self._handler = handler
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, message: InboundMessage) -> asyncio.Task:
        """Schedule screening for ``message``; must be called on the running loop."""

        task = asyncio.get_running_loop().create_task(
            self._run(message),
            name=f"screen:{message.tenant_id}:{message.conversation_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, message: InboundMessage) -> None:
        try:
            await self._handler.handle(message)
        except Exception:
            # Nobody awaits these tasks, so this is the last place to see the error.
            LOGGER.exception(
                "Error while processing message for %s/%s",
                message.tenant_id,
                message.conversation_id,
            )

    async def drain(self) -> None:
        """Wait for every in-flight task to finish."""

        if not self._tasks:
            return
        LOGGER.info("Waiting for %s in-flight message(s)", len(self._tasks))
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
