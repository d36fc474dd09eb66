from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def _channel(class_name: str) -> str:
    return class_name.strip().lower()


class NotificationHub:
    """Websocket subscribers grouped by class name."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, class_name: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[_channel(class_name)].add(websocket)

    async def disconnect(self, class_name: str, websocket: WebSocket) -> None:
        channel = _channel(class_name)
        async with self._lock:
            sockets = self._connections.get(channel)
            if not sockets:
                return
            sockets.discard(websocket)
            if not sockets:
                self._connections.pop(channel, None)

    def subscriber_count(self, class_name: str) -> int:
        return len(self._connections.get(_channel(class_name), ()))

    async def publish(self, class_name: str, payload: dict) -> None:
        channel = _channel(class_name)
        async with self._lock:
            sockets = list(self._connections.get(channel, set()))

        if not sockets:
            return

        stale: list[WebSocket] = []
        for websocket in sockets:
            try:
                await websocket.send_json(payload)
            except Exception:  # pragma: no cover - network/runtime dependent
                stale.append(websocket)

        if stale:
            async with self._lock:
                active = self._connections.get(channel, set())
                for socket in stale:
                    active.discard(socket)
                if not active:
                    self._connections.pop(channel, None)
            logger.debug("Removed %d stale notification websocket(s) for class %s", len(stale), class_name)


notification_hub = NotificationHub()
