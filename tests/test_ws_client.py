"""Tests for WebexWsClient and connect_websocket()."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import (
    ConnectionClosed,
    InvalidHandshake,
    InvalidStatus,
    InvalidURI,
)
from websockets.frames import Close

from webex_transport.errors import (
    WebexAuthenticationError,
    WebexConnectionClosed,
    WebexEncodeError,
    WebexInvalidUsage,
    WebexTimeout,
    WebexTransportError,
)
from webex_transport.ws import MAX_FRAME_SIZE, connect_websocket
from webex_transport.ws_client import WebexWsClient, WsMessage, WsMessageType

WS_URL = "wss://mercury.example.test/v1/registrations"


class TestWsMessage:
    """Tests for WsMessage dataclass."""

    def test_enum_values(self):
        assert WsMessageType.TEXT.value == "text"
        assert WsMessageType.CLOSED.value == "closed"
        assert WsMessageType.ERROR.value == "error"

    def test_closed_message_defaults(self):
        msg = WsMessage(type=WsMessageType.CLOSED)
        assert msg.data is None
        assert msg.reason is None
        assert msg.code is None

    def test_message_is_frozen(self):
        msg = WsMessage(type=WsMessageType.TEXT, data="test")
        with pytest.raises(AttributeError):
            msg.data = "modified"  # type: ignore[misc]


class TestConnectWebsocket:
    """Tests for connect_websocket() error classification."""

    async def test_success(self):
        conn = MagicMock()
        with patch(
            "webex_transport.ws.websockets.connect", new=AsyncMock(return_value=conn)
        ) as mock_connect:
            result = await connect_websocket(WS_URL, ping_interval=30)

        assert result is conn
        assert mock_connect.call_args.args == (WS_URL,)
        assert mock_connect.call_args.kwargs["ping_interval"] == 30
        assert mock_connect.call_args.kwargs["max_size"] == MAX_FRAME_SIZE

    @pytest.mark.parametrize(
        ("raised", "expected"),
        [
            (TimeoutError(), WebexTimeout),
            (InvalidURI("http://nope", "not a WebSocket URI"), WebexInvalidUsage),
            (InvalidStatus(MagicMock(status_code=401)), WebexAuthenticationError),
            (InvalidStatus(MagicMock(status_code=403)), WebexAuthenticationError),
            (InvalidStatus(MagicMock(status_code=502)), WebexTransportError),
            (InvalidHandshake("bad upgrade"), WebexTransportError),
            (OSError("connection refused"), WebexTransportError),
        ],
    )
    async def test_failures(self, raised, expected):
        with patch("webex_transport.ws.websockets.connect", side_effect=raised):
            with pytest.raises(expected) as exc_info:
                await connect_websocket(WS_URL)

        assert exc_info.value.__cause__ is raised


class TestWebexWsClientConnect:
    """Tests for WebexWsClient.connect()."""

    async def test_connect_success(self):
        mock_ws = AsyncMock()

        with patch(
            "webex_transport.ws_client.connect_websocket",
            return_value=mock_ws,
        ) as mock_connect:
            client = WebexWsClient()
            await client.connect(WS_URL)

            mock_connect.assert_called_once_with(WS_URL, ping_interval=20, timeout=15.0)
            assert client._ws is mock_ws

    async def test_connect_propagates_errors(self):
        with patch(
            "webex_transport.ws_client.connect_websocket",
            side_effect=WebexTransportError("WebSocket connection failed"),
        ):
            client = WebexWsClient()
            with pytest.raises(WebexTransportError, match="connection failed"):
                await client.connect(WS_URL)

    async def test_close_not_connected(self):
        client = WebexWsClient()
        await client.close()


class TestWebexWsClientSendJson:
    """Tests for WebexWsClient.send_json()."""

    async def test_send_json_success(self):
        mock_ws = AsyncMock()

        with patch("webex_transport.ws_client.connect_websocket", return_value=mock_ws):
            client = WebexWsClient()
            await client.connect(WS_URL)
            await client.send_json({"type": "ack", "messageId": "evt-1"})

        mock_ws.send.assert_called_once_with('{"type": "ack", "messageId": "evt-1"}')

    async def test_send_json_not_connected(self):
        client = WebexWsClient()
        with pytest.raises(WebexTransportError, match="not connected"):
            await client.send_json({"type": "test"})

    async def test_send_json_unserializable(self):
        mock_ws = AsyncMock()

        with patch("webex_transport.ws_client.connect_websocket", return_value=mock_ws):
            client = WebexWsClient()
            await client.connect(WS_URL)
            with pytest.raises(WebexEncodeError):
                await client.send_json({"value": object()})

        mock_ws.send.assert_not_called()

    async def test_send_json_on_closed_socket(self):
        mock_ws = AsyncMock()
        mock_ws.send.side_effect = ConnectionClosed(Close(1001, "going away"), None)

        with patch("webex_transport.ws_client.connect_websocket", return_value=mock_ws):
            client = WebexWsClient()
            await client.connect(WS_URL)
            with pytest.raises(WebexConnectionClosed) as exc_info:
                await client.send_json({"type": "ack"})

        assert exc_info.value.reason == "going away"
        assert exc_info.value.code == 1001


class AsyncIteratorMock:
    """Helper class to create a proper async iterator mock."""

    def __init__(self, items: list, *, raise_on_iter: Exception | None = None):
        self._items = items
        self._index = 0
        self._raise_on_iter = raise_on_iter
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self._items):
            if self._raise_on_iter is not None:
                raise self._raise_on_iter
            raise StopAsyncIteration
        item = self._items[self._index]
        self._index += 1
        return item


async def _collect(mock_ws) -> list[WsMessage]:
    with patch("webex_transport.ws_client.connect_websocket", return_value=mock_ws):
        client = WebexWsClient()
        await client.connect(WS_URL)
        return [msg async for msg in client]


class TestWebexWsClientIteration:
    """Tests for WebexWsClient async iteration."""

    def test_iter_not_connected(self):
        client = WebexWsClient()
        with pytest.raises(WebexTransportError, match="not connected"):
            client.__aiter__()

    async def test_iter_preserves_order(self):
        messages = await _collect(AsyncIteratorMock(["m1", "m2", b"m3", "m4"]))

        assert [m.data for m in messages[:-1]] == ["m1", "m2", b"m3", "m4"]
        assert all(m.type is WsMessageType.TEXT for m in messages[:-1])

    async def test_iter_close_frame_reason(self):
        mock_ws = AsyncIteratorMock(
            ["hello"], raise_on_iter=ConnectionClosed(Close(4000, "idle timeout"), None)
        )

        messages = await _collect(mock_ws)

        assert len(messages) == 2
        assert messages[1].type is WsMessageType.CLOSED
        assert messages[1].reason == "idle timeout"
        assert messages[1].code == 4000

    async def test_iter_connection_lost(self):
        messages = await _collect(
            AsyncIteratorMock([], raise_on_iter=ConnectionClosed(None, None))
        )

        assert len(messages) == 1
        assert messages[0].type is WsMessageType.CLOSED
        assert messages[0].reason == "connection lost"
        assert messages[0].code is None

    async def test_iter_unexpected_error(self):
        messages = await _collect(
            AsyncIteratorMock([], raise_on_iter=RuntimeError("Unexpected"))
        )

        assert len(messages) == 1
        assert messages[0].type is WsMessageType.ERROR
        assert messages[0].reason == "Unexpected"

    async def test_iter_graceful_close(self):
        mock_ws = AsyncIteratorMock(["hello"])
        mock_ws.close_code = 1000
        mock_ws.close_reason = "bye"

        messages = await _collect(mock_ws)

        assert len(messages) == 2
        assert messages[0].data == "hello"
        assert messages[1].type is WsMessageType.CLOSED
        assert messages[1].reason == "bye"
        assert messages[1].code == 1000
