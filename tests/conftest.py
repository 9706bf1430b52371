"""Pytest configuration and fixtures for webex_transport tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from webex_transport.ws_client import WsMessage, WsMessageType


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    text_data: str | bytes | None = None,
    headers: dict[str, str] | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Body to serialize and return from read()
        text_data: Raw body to return from read(), overrides json_data
        headers: Response headers

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}

    if text_data is None:
        text_data = json.dumps(json_data) if json_data is not None else ""
    if isinstance(text_data, str):
        text_data = text_data.encode()
    response.read.return_value = text_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def room_payload(index: int, room_type: str = "group") -> dict[str, Any]:
    """Build a wire-format room entry."""
    return {
        "id": f"room-{index}",
        "title": f"Room {index}",
        "type": room_type,
        "isLocked": False,
        "created": f"2024-01-0{index}T10:00:00.000Z",
    }


def event_frame(event_id: str, event_type: str = "conversation.activity") -> str:
    """Build a wire-format event frame."""
    return json.dumps(
        {
            "id": event_id,
            "data": {"eventType": event_type, "activity": {"id": f"act-{event_id}"}},
            "timestamp": 1700000000000,
            "trackingId": f"track-{event_id}",
        }
    )


def text(data: str | bytes) -> WsMessage:
    return WsMessage(WsMessageType.TEXT, data)


def closed(reason: str | None = None, code: int | None = None) -> WsMessage:
    return WsMessage(WsMessageType.CLOSED, reason=reason, code=code)


class FakeWsClient:
    """Stand-in for WebexWsClient that replays scripted messages.

    With ``hang=True`` iteration blocks after the scripted messages until
    the task is cancelled, like a healthy idle socket.
    """

    def __init__(
        self,
        messages: list[WsMessage] | None = None,
        *,
        hang: bool = False,
        connect_error: Exception | None = None,
    ) -> None:
        self._messages = list(messages or [])
        self._hang = hang
        self.connect = AsyncMock(side_effect=connect_error)
        self.close = AsyncMock()
        self.send_json = AsyncMock()

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for msg in self._messages:
            yield msg
        if self._hang:
            await asyncio.Event().wait()
