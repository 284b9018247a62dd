"""WebSocket endpoints for the paired relay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, status
from fastapi.responses import PlainTextResponse

from relay_broker.adapters.websocket_connection import WebSocketConnection
from relay_broker.domain.errors import RelayBrokerError
from relay_broker.services.relay import CLOSE_POLICY_VIOLATION

if TYPE_CHECKING:
    from relay_broker.containers import AppContainer

router = APIRouter(tags=["relay"])
logger = logging.getLogger(__name__)

_DENIAL_EXTENSION = "websocket.http.response"


@router.websocket("/relay")
async def relay(
    websocket: WebSocket, token: str | None = None, role: str | None = None
) -> None:
    """Authorize a party and relay its messages to the paired peer."""
    container: AppContainer = websocket.app.state.container
    if not token or not role:
        await _deny(websocket, "Missing authorization token or role")
        return

    connection = WebSocketConnection(websocket)
    try:
        session = container.relay_engine.connect(token, role, connection)
    except RelayBrokerError as exc:
        logger.info(
            "Relay connection rejected",
            extra={"role": role, "error": type(exc).__name__},
        )
        await connection.accept()
        await connection.close(code=CLOSE_POLICY_VIOLATION, reason=str(exc))
        return

    await container.relay_engine.serve(session)


@router.websocket("/echo")
async def echo(websocket: WebSocket) -> None:
    """Echo every frame back to the sender."""
    await websocket.accept()
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        if message.get("text") is not None:
            await websocket.send_text(message["text"])
        else:
            await websocket.send_bytes(message.get("bytes") or b"")


async def _deny(websocket: WebSocket, reason: str) -> None:
    """Refuse the handshake with 401 where the server supports it."""
    if _DENIAL_EXTENSION in (websocket.scope.get("extensions") or {}):
        await websocket.send_denial_response(
            PlainTextResponse(reason, status_code=status.HTTP_401_UNAUTHORIZED)
        )
        return
    await websocket.close(code=CLOSE_POLICY_VIOLATION, reason=reason)
