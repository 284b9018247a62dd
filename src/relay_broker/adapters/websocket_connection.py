"""Starlette WebSocket transport for the relay."""

import asyncio
import logging
from dataclasses import dataclass, field

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from relay_broker.domain.errors import ConnectionClosedError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WebSocketConnection:
    """Wraps a WebSocket with a per-connection write lock."""

    websocket: WebSocket
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def accept(self) -> None:
        """Accept the WebSocket handshake."""
        await self.websocket.accept()

    async def send(self, message: str | bytes) -> None:
        """Send a text or binary frame, one writer at a time."""
        async with self.write_lock:
            try:
                if isinstance(message, bytes):
                    await self.websocket.send_bytes(message)
                else:
                    await self.websocket.send_text(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                raise ConnectionClosedError("connection closed") from exc

    async def receive(self) -> str | bytes:
        """Return the next text or binary frame."""
        try:
            message = await self.websocket.receive()
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            raise ConnectionClosedError("connection closed") from exc
        if message["type"] == "websocket.disconnect":
            raise ConnectionClosedError("connection closed")
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the WebSocket unless either side already closed it."""
        if (
            self.websocket.application_state == WebSocketState.DISCONNECTED
            or self.websocket.client_state == WebSocketState.DISCONNECTED
        ):
            return
        async with self.write_lock:
            try:
                await self.websocket.close(code=code, reason=reason)
            except (RuntimeError, OSError):
                logger.debug("WebSocket already closed", exc_info=True)
