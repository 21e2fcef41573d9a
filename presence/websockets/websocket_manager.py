"""
WebSocket connection manager
"""
from fastapi import WebSocket
import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict
import logging

from ..services.broadcaster import Broadcaster

logger = logging.getLogger(__name__)

class ConnectionManager(Broadcaster):
    """
    Broadcaster backed by live WebSockets.

    publish()/send() only enqueue. Each socket has its own outbox drained by a
    sender task, so frames reach a socket in the order they were produced.
    """

    def __init__(self, outbox_max_size: int = 100):
        self.outbox_max_size = outbox_max_size
        self.active_connections: Dict[str, WebSocket] = {}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        self._senders: Dict[str, asyncio.Task] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accept the socket and return its connection token."""
        await websocket.accept()
        token = uuid.uuid4().hex
        outbox: asyncio.Queue = asyncio.Queue(maxsize=self.outbox_max_size)
        self.active_connections[token] = websocket
        self._outboxes[token] = outbox
        self._senders[token] = asyncio.create_task(self._drain(token, websocket, outbox))
        logger.info(f"WebSocket connected. Active connections: {len(self.active_connections)}")
        return token

    def disconnect(self, token: str):
        self.active_connections.pop(token, None)
        self._outboxes.pop(token, None)
        sender = self._senders.pop(token, None)
        if sender:
            sender.cancel()
        logger.info(f"WebSocket disconnected. Active connections: {len(self.active_connections)}")

    def publish(self, event: str, data: Any = None):
        if not self._outboxes:
            return
        message = self._frame(event, data)
        for token in list(self._outboxes):
            self._enqueue(token, message)

    def send(self, connection_token: str, event: str, data: Any = None):
        self._enqueue(connection_token, self._frame(event, data))

    async def close_all(self):
        for token, websocket in list(self.active_connections.items()):
            self.disconnect(token)
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    @staticmethod
    def _frame(event: str, data: Any) -> str:
        return json.dumps({
            "type": event,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def _enqueue(self, token: str, message: str):
        outbox = self._outboxes.get(token)
        if outbox is None:
            logger.debug(f"No outbox for connection {token[:8]}, dropping message")
            return
        if outbox.full():
            outbox.get_nowait()
            logger.warning(f"Outbox full for connection {token[:8]}, dropped oldest message")
        outbox.put_nowait(message)

    async def _drain(self, token: str, websocket: WebSocket, outbox: asyncio.Queue):
        while True:
            message = await outbox.get()
            try:
                await websocket.send_text(message)
            except Exception as e:
                logger.warning(f"Failed to send message to WebSocket: {e}")
                # Stop queueing for a dead socket; the receive loop handles the disconnect
                self._outboxes.pop(token, None)
                return
