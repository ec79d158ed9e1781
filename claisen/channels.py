"""Per-client outbox for the WebSocket broadcast."""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Deque, Dict, Optional

Message = Optional[Dict[str, Any]]


def _without_sample(message: Dict[str, Any]) -> Dict[str, Any]:
    # Frames are shared between clients, so copy instead of mutating
    return {**message, "payload": {**message["payload"], "chart_sample": None}}


class ClientChannel:
    """
    Bounded queue of outgoing messages for one client.

    When full, the oldest ``state`` frame is dropped, preferring frames that
    carry no chart sample. ``chart`` messages are never dropped. If a frame
    with a chart sample has to go, the channel is marked ``chart_stale`` and
    the sender must resend the full chart before continuing (see
    :meth:`resync`). ``None`` ends the session.
    """

    def __init__(self, maxsize: int):
        self.maxsize = maxsize
        self.dropped = 0
        self.chart_stale = False
        self._messages: Deque[Message] = deque()
        self._ready = asyncio.Event()

    def __len__(self) -> int:
        return len(self._messages)

    def put(self, message: Message) -> None:
        if message is not None and len(self._messages) >= self.maxsize:
            self._drop_one()
        self._messages.append(message)
        self._ready.set()

    def _drop_one(self) -> None:
        fallback = None
        for index, queued in enumerate(self._messages):
            if queued is None or queued["type"] != "state":
                continue
            if queued["payload"].get("chart_sample") is None:
                del self._messages[index]
                self.dropped += 1
                return
            if fallback is None:
                fallback = index

        if fallback is not None:
            del self._messages[fallback]
            self.dropped += 1
            self.chart_stale = True

    async def get(self) -> Message:
        while not self._messages:
            self._ready.clear()
            await self._ready.wait()
        return self._messages.popleft()

    def resync(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Clear ``chart_stale`` once a full chart snapshot has been sent ahead
        of the ``state`` frame ``message``.

        Samples still queued are already part of that snapshot, so they are
        stripped from the queued frames and from ``message``, which is
        returned.
        """
        self.chart_stale = False
        self._messages = deque(
            _without_sample(queued)
            if queued is not None and queued["type"] == "state" else queued
            for queued in self._messages
        )
        return _without_sample(message)
