"""Event stream session manager for the Webex WebSocket endpoint.

The session owns exactly one socket at a time. It handles:
- Connection and the authorization handshake
- Decoding frames into events, delivered in arrival order
- Reporting malformed frames without dropping the connection
- Reconnecting with backoff after an unexpected closure

Consumers only see the ``EventStream``: an async iterator of ``WebexEvent``
values and ``WebexError`` values. It ends when the consumer closes the
session or reconnection is abandoned.

Usage:
    session = WebexEventSession(token)
    stream = await session.connect()
    async for item in stream:
        if isinstance(item, WebexError):
            ...
        else:
            handle(item)
    await session.close()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import Enum

from .config import DEFAULT_WS_URL, ReconnectPolicy
from .errors import (
    WebexAuthenticationError,
    WebexConnectionClosed,
    WebexError,
    WebexInvalidUsage,
    WebexProtocolError,
    WebexUncategorized,
)
from .models import WebexEvent
from .protocol import build_ack_frame, build_auth_frame, parse_event
from .ws_client import WebexWsClient, WsMessage, WsMessageType

_LOGGER = logging.getLogger(__name__)

# Application close codes the platform uses for rejected credentials.
AUTH_CLOSE_CODES = frozenset({4401, 4403})

StreamItem = WebexEvent | WebexError

_END = object()


class SessionState(Enum):
    """Event session connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class EventStream:
    """Async iterator over delivered events and stream errors."""

    def __init__(self, queue: asyncio.Queue[object]) -> None:
        self._queue = queue
        self._finished = False

    def __aiter__(self) -> EventStream:
        return self

    async def __anext__(self) -> StreamItem:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._finished = True
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class WebexEventSession:
    """Session manager for the Webex event stream."""

    def __init__(
        self,
        token: str,
        *,
        url: str = DEFAULT_WS_URL,
        reconnect_policy: ReconnectPolicy | None = None,
        ping_interval: int | None = 20,
        connect_timeout: float = 15.0,
        ack_events: bool = True,
    ) -> None:
        """Initialize session.

        Args:
            token: Access token, sent in the authorization frame
            url: Event endpoint URL
            reconnect_policy: Reconnect attempt cap and backoff curve
            ping_interval: Keepalive ping interval (seconds), None to disable
            connect_timeout: Timeout for opening the socket (seconds)
            ack_events: Acknowledge each delivered event that carries an id
        """
        if not token:
            raise WebexInvalidUsage("token must not be empty")

        self._token = token
        self._url = url
        self._reconnect_policy = reconnect_policy or ReconnectPolicy()
        self._ping_interval = ping_interval
        self._connect_timeout = connect_timeout
        self._ack_events = ack_events

        self._ws: WebexWsClient | None = None
        self._state = SessionState.DISCONNECTED
        self._run_task: asyncio.Task[None] | None = None
        self._queue: asyncio.Queue[object] | None = None
        self._stream_ended = True

        self._state_callback: Callable[[SessionState, str], None] | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    def on_state_changed(self, callback: Callable[[SessionState, str], None]) -> None:
        """Register callback for state transitions.

        Callback receives the new state and the cause of the transition.
        """
        self._state_callback = callback

    async def connect(self) -> EventStream:
        """Connect, authenticate and start delivering events.

        Raises:
            WebexInvalidUsage: If the session is not disconnected
            WebexAuthenticationError: If the credentials are rejected
            WebexTransportError: If the socket cannot be opened
        """
        if self._state is not SessionState.DISCONNECTED:
            raise WebexInvalidUsage(f"Event session is {self._state.value}")

        await self._open("connect requested")

        self._queue = asyncio.Queue()
        self._stream_ended = False
        stream = EventStream(self._queue)
        self._run_task = asyncio.create_task(self._run())
        return stream

    async def close(self) -> None:
        """Close the session. No reconnect is attempted afterwards."""
        if self._state in (SessionState.CONNECTED, SessionState.CONNECTING):
            self._set_state(SessionState.CLOSING, "close requested")

        task, self._run_task = self._run_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self._close_socket()
        self._end_stream()
        self._set_state(SessionState.DISCONNECTED, "closed by consumer")

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _set_state(self, state: SessionState, cause: str) -> None:
        """Update connection state and notify callback."""
        if self._state is state:
            return
        _LOGGER.debug("State: %s → %s (%s)", self._state.value, state.value, cause)
        self._state = state
        if self._state_callback:
            self._state_callback(state, cause)

    async def _open(self, cause: str) -> None:
        """Open a socket and send the authorization frame."""
        self._set_state(SessionState.CONNECTING, cause)
        _LOGGER.info("Connecting to %s", self._url)

        ws_client = WebexWsClient()
        try:
            await ws_client.connect(
                self._url,
                ping_interval=self._ping_interval,
                timeout=self._connect_timeout,
            )
            await ws_client.send_json(build_auth_frame(self._token))
        except WebexError as err:
            await self._close_client(ws_client)
            self._set_state(SessionState.DISCONNECTED, f"connect failed: {err}")
            raise
        except asyncio.CancelledError:
            await self._close_client(ws_client)
            self._set_state(SessionState.DISCONNECTED, "connect cancelled")
            raise

        self._ws = ws_client
        self._set_state(SessionState.CONNECTED, "authorization sent")
        _LOGGER.info("Event stream connected")

    async def _close_socket(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await self._close_client(ws)

    @staticmethod
    async def _close_client(ws_client: WebexWsClient) -> None:
        try:
            await asyncio.wait_for(ws_client.close(), timeout=2.0)
        except TimeoutError:
            _LOGGER.warning("WebSocket close timed out")

    # -------------------------------------------------------------------------
    # Internal: Delivery
    # -------------------------------------------------------------------------

    def _emit(self, item: StreamItem) -> None:
        if self._queue is not None and not self._stream_ended:
            self._queue.put_nowait(item)

    def _end_stream(self) -> None:
        if self._queue is not None and not self._stream_ended:
            self._stream_ended = True
            self._queue.put_nowait(_END)

    async def _run(self) -> None:
        """Receive until closure, then reconnect; ends the stream when done."""
        try:
            while True:
                error = await self._receive()
                self._emit(error)
                await self._close_socket()

                if isinstance(error, WebexAuthenticationError):
                    _LOGGER.error("Event stream authentication rejected")
                    self._set_state(SessionState.DISCONNECTED, "authentication rejected")
                    break

                _LOGGER.warning("Event stream closed: %s", error)
                if not await self._reconnect():
                    break
        except asyncio.CancelledError:
            _LOGGER.debug("Event stream task cancelled")
            raise
        except Exception as err:
            _LOGGER.exception("Unexpected event stream error: %s", err)
            self._emit(WebexUncategorized(str(err) or type(err).__name__, cause=err))
            await self._close_socket()
            self._set_state(SessionState.DISCONNECTED, "unexpected error")
        finally:
            self._end_stream()

    async def _receive(self) -> WebexError:
        """Deliver frames from the current socket; return the closure cause."""
        if self._ws is None:
            return WebexConnectionClosed("not connected")

        message_count = 0
        async for msg in self._ws:
            if msg.type is WsMessageType.TEXT:
                message_count += 1
                await self._handle_text(msg)
            elif msg.type is WsMessageType.CLOSED:
                _LOGGER.info(
                    "WebSocket closed by server after %d messages: %s (code %s)",
                    message_count,
                    msg.reason,
                    msg.code,
                )
                if msg.code in AUTH_CLOSE_CODES:
                    return WebexAuthenticationError()
                return WebexConnectionClosed(msg.reason or "connection lost", code=msg.code)
            else:
                _LOGGER.error("WebSocket error: %s", msg.reason)
                return WebexConnectionClosed(msg.reason or "socket error")

        return WebexConnectionClosed("connection lost")

    async def _handle_text(self, msg: WsMessage) -> None:
        if msg.data is None:
            self._emit(WebexProtocolError("empty event frame"))
            return
        try:
            event = parse_event(msg.data)
        except WebexProtocolError as err:
            _LOGGER.warning("Malformed event frame: %s", err.description)
            self._emit(err)
            return

        self._emit(event)

        if self._ack_events and event.id and self._ws is not None:
            try:
                await self._ws.send_json(build_ack_frame(event.id))
            except WebexError as err:
                # The receive loop reports the closure that caused this.
                _LOGGER.debug("Ack for %s not sent: %s", event.id, err)

    # -------------------------------------------------------------------------
    # Internal: Reconnect
    # -------------------------------------------------------------------------

    async def _reconnect(self) -> bool:
        """Reconnect with backoff. Returns False when giving up."""
        attempt = 0
        last_error: WebexError | None = None

        while self._reconnect_policy.allows(attempt + 1):
            attempt += 1
            self._set_state(SessionState.CONNECTING, "unexpected closure")
            delay = self._reconnect_policy.delay_for(attempt)
            _LOGGER.info("Reconnecting in %.1fs (attempt %d)", delay, attempt)
            await asyncio.sleep(delay)

            try:
                await self._open(f"reconnect attempt {attempt}")
            except WebexAuthenticationError as err:
                self._emit(err)
                return False
            except WebexError as err:
                _LOGGER.warning("Reconnect attempt %d failed: %s", attempt, err)
                last_error = err
                continue
            return True

        _LOGGER.error("Giving up after %d reconnect attempts", attempt)
        if last_error is not None:
            self._emit(last_error)
        return False
