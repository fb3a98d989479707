"""Adapter from a Starlette/FastAPI WebSocket to the ConnectionHandle protocol."""

from typing import Any
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from match_server.core.exceptions import ConnectionClosedError


class WebSocketConnection:
    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.connection_id = uuid4().hex

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: dict[str, Any]) -> None:
        try:
            await self.websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError) as error:
            # Starlette raises RuntimeError when sending after the close handshake
            raise ConnectionClosedError(
                f"Connection {self.connection_id} is closed."
            ) from error

    def __repr__(self) -> str:
        return f"WebSocketConnection({self.connection_id!r})"
