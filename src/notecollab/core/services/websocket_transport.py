"""WebSocket implementation of the hub transport."""

import asyncio
from contextlib import suppress
from typing import Any, Dict, Optional

from fastapi import WebSocket, status

from ..logging import get_logger
from .interfaces import ITransport

logger = get_logger("collab.transport")

_CLOSE = object()


class WebSocketTransport(ITransport):
    """Fire-and-forget delivery over FastAPI websockets.

    Each connection gets a bounded queue drained by its own writer task, so
    ``send`` never awaits and frames to one connection keep their order.
    A full queue drops the frame; a slow client simply misses events until
    it re-joins and gets a fresh snapshot.

    Must be used from the event loop thread.
    """

    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self._queues: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._queues[connection_id] = queue
        self._writers[connection_id] = asyncio.create_task(
            self._writer(connection_id, websocket, queue),
            name=f"collab-writer-{connection_id}",
        )

    async def unregister(self, connection_id: str) -> None:
        self._queues.pop(connection_id, None)
        task = self._writers.pop(connection_id, None)
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    def is_registered(self, connection_id: str) -> bool:
        return connection_id in self._queues

    @property
    def active(self) -> int:
        return len(self._queues)

    def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        queue = self._queues.get(connection_id)
        if queue is None:
            raise ConnectionError(f"Connection {connection_id} is not registered")
        # raises QueueFull, the hub drops the frame for this recipient only
        queue.put_nowait({"event": event, "data": payload})

    def close(self, connection_id: str) -> None:
        queue: Optional[asyncio.Queue] = self._queues.get(connection_id)
        if queue is None:
            return
        # pending frames are pointless for an evicted connection
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(_CLOSE)

    async def _writer(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue) -> None:
        while True:
            frame = await queue.get()
            if frame is _CLOSE:
                try:
                    await websocket.close(code=status.WS_1000_NORMAL_CLOSURE, reason="Idle timeout")
                except Exception as e:
                    logger.debug("WebSocket close failed", extra={
                        "connection_id": connection_id,
                        "error": str(e),
                    })
                return
            try:
                await websocket.send_json(frame)
            except Exception as e:
                # the receive loop notices the dead socket and cleans up
                logger.debug("WebSocket send failed", extra={
                    "connection_id": connection_id,
                    "error": str(e),
                })
                return
