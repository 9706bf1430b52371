"""WebSocket client wrapper for the Webex event stream."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from .errors import (
    WebexConnectionClosed,
    WebexEncodeError,
    WebexTransportError,
)
from .ws import connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class WsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class WsMessage:
    """Normalized WebSocket message payload.

    ``reason`` and ``code`` are set on CLOSED messages when the peer sent a
    close frame, and ``reason`` describes the failure on ERROR messages.
    """

    type: WsMessageType
    data: str | bytes | None = None
    reason: str | None = None
    code: int | None = None


class WebexWsClient:
    """Wrapper around the websockets library for the event stream."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    async def connect(
        self,
        url: str,
        *,
        ping_interval: int | None = 20,
        timeout: float = 15.0,
    ) -> None:
        """Connect to the event endpoint."""
        self._ws = await connect_websocket(
            url,
            ping_interval=ping_interval,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            await self._ws.close()

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Send a JSON payload to the websocket."""
        if self._ws is None:
            raise WebexTransportError("WebSocket is not connected")
        try:
            text = json.dumps(payload)
        except (TypeError, ValueError) as err:
            raise WebexEncodeError("Could not encode frame", cause=err) from err
        try:
            await self._ws.send(text)
        except ConnectionClosed as err:
            reason, code = _close_details(err)
            raise WebexConnectionClosed(reason, code=code) from err

    def __aiter__(self) -> AsyncIterator[WsMessage]:
        if self._ws is None:
            raise WebexTransportError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[WsMessage]:
        if self._ws is None:
            raise WebexTransportError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                yield self._normalize_message(msg)
        except ConnectionClosed as err:
            reason, code = _close_details(err)
            yield WsMessage(WsMessageType.CLOSED, reason=reason, code=code)
        except Exception as err:
            yield WsMessage(WsMessageType.ERROR, reason=str(err) or type(err).__name__)
        else:
            # Normal iteration completion means the peer closed gracefully.
            reason, code = _close_details(None, self._ws)
            yield WsMessage(WsMessageType.CLOSED, reason=reason, code=code)

    @staticmethod
    def _normalize_message(msg: Any) -> WsMessage:
        """Normalize a received frame into a TEXT message."""
        if isinstance(msg, (str, bytes)):
            return WsMessage(WsMessageType.TEXT, msg)
        return WsMessage(WsMessageType.TEXT, str(msg))


def _close_details(
    err: ConnectionClosed | None, ws: ClientConnection | None = None
) -> tuple[str, int | None]:
    """Extract (reason, code) from a close frame, if one was received."""
    if err is not None:
        if err.rcvd is None:
            return "connection lost", None
        code, reason = err.rcvd.code, err.rcvd.reason
    else:
        code = getattr(ws, "close_code", None)
        reason = getattr(ws, "close_reason", None)
        if not isinstance(code, int):
            return "connection lost", None
    return reason or f"closed with code {code}", code
