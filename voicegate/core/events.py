"""Server-sent event fan-out to connected browser observers."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

from voicegate.core.logger import get_logger

logger = get_logger("events")


def format_event(event_type: str, **fields: Any) -> str:
    """Frame one event as an SSE ``data:`` line."""
    payload = {
        "type": event_type,
        **fields,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class EventChannel:
    """Outgoing buffer of a single observer."""

    def __init__(self, max_backlog: int = 100) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_backlog)
        self.closed = False

    def push(self, message: str) -> None:
        self._queue.put_nowait(message)

    async def get(self) -> str:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class EventBroadcaster:
    def __init__(
        self,
        *,
        heartbeat_sec: float = 15.0,
        max_backlog: int = 100,
        on_last_disconnect: Optional[Callable[[], None]] = None,
    ) -> None:
        self._channels: List[EventChannel] = []
        self._heartbeat_sec = heartbeat_sec
        self._max_backlog = max_backlog
        self._on_last_disconnect = on_last_disconnect

    def __len__(self) -> int:
        return len(self._channels)

    def subscribe(self) -> EventChannel:
        channel = EventChannel(self._max_backlog)
        channel.push(format_event("connected"))
        self._channels.append(channel)
        logger.info("Observer connected. Total observers: %d", len(self._channels))
        return channel

    def unsubscribe(self, channel: EventChannel) -> None:
        if channel not in self._channels:
            return
        self._channels.remove(channel)
        channel.closed = True
        logger.info("Observer disconnected. Total observers: %d", len(self._channels))
        if not self._channels and self._on_last_disconnect is not None:
            try:
                self._on_last_disconnect()
            except Exception:
                logger.exception("Last-disconnect callback failed")

    def broadcast(self, message: str) -> int:
        """Deliver ``message`` to every observer; returns how many received it.

        An observer whose backlog is full is dropped without affecting the rest.
        """
        delivered = 0
        for channel in list(self._channels):
            try:
                channel.push(message)
            except asyncio.QueueFull:
                logger.warning("Dropping observer with %d undelivered events", channel.pending())
                self.unsubscribe(channel)
                continue
            delivered += 1
        return delivered

    def speak(self, text: str) -> int:
        return self.broadcast(format_event("speak", text=text))

    def wait_status(self, is_waiting: bool) -> int:
        return self.broadcast(format_event("waitStatus", isWaiting=is_waiting))

    async def stream(self, is_disconnected: Callable[[], Awaitable[bool]]) -> AsyncIterator[str]:
        """Register an observer and yield its framed events until it goes away.

        The channel only exists once iteration starts, so a response that is
        never sent leaves nothing registered.
        """
        channel = self.subscribe()
        try:
            while not channel.closed:
                if await is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(channel.get(), timeout=self._heartbeat_sec)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield message
        finally:
            self.unsubscribe(channel)
