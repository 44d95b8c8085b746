"""Best-effort progress notifications.

Shell execution reports each output line as it arrives. Delivery is
advisory: when the channel is full the event is dropped and the command
keeps running. Consumers must tolerate gaps.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

StreamName = Literal["stdout", "stderr"]


class ShellProgress(BaseModel):
    """One line of output from a running shell command."""

    stream: StreamName
    output: str

    def to_notification(self) -> dict[str, Any]:
        """Render as a JSON-RPC ``notifications/message`` payload."""
        return {
            "method": "notifications/message",
            "params": {
                "level": "info",
                "data": {
                    "type": "shell",
                    "stream": self.stream,
                    "output": self.output,
                },
            },
        }


class ProgressChannel:
    """Bounded one-way channel with a non-blocking send."""

    def __init__(self, maxsize: int = 64):
        self._queue: asyncio.Queue[Optional[ShellProgress]] = asyncio.Queue(maxsize=maxsize)
        self.sent = 0
        self.dropped = 0

    def try_send(self, event: ShellProgress) -> bool:
        """Queue an event without waiting. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        self.sent += 1
        return True

    def qsize(self) -> int:
        return self._queue.qsize()

    def get_nowait(self) -> Optional[ShellProgress]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def close(self) -> None:
        """Signal consumers that no more events will follow."""
        await self._queue.put(None)

    async def __aiter__(self) -> AsyncIterator[ShellProgress]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
