"""
In-process broadcaster for bulk task events. WebSocket clients and local
subscribers (async callables) receive every published event.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], Awaitable[None]]


class NotificationHub:
    def __init__(self) -> None:
        self.active_connections: List[WebSocket] = []
        self.subscribers: List[Subscriber] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a local listener. Returns a function that removes it."""
        self.subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self.subscribers:
                self.subscribers.remove(callback)

        return _unsubscribe

    async def publish(self, event: Dict[str, Any]) -> None:
        # Broken connections are dropped, failing listeners are logged.
        for connection in list(self.active_connections):
            try:
                await connection.send_json(event)
            except Exception as e:
                logger.warning("Dropping notification connection: %s", e)
                self.disconnect(connection)
        for callback in list(self.subscribers):
            try:
                await callback(event)
            except Exception:
                logger.exception("Notification subscriber failed for %s", event.get("type"))


hub = NotificationHub()


def get_notification_hub() -> NotificationHub:
    return hub
