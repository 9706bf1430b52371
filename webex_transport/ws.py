"""WebSocket connection helper for the Webex event stream."""

from __future__ import annotations

import asyncio

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidStatus,
    InvalidURI,
    WebSocketException,
)

from .errors import (
    WebexAuthenticationError,
    WebexInvalidUsage,
    WebexTimeout,
    WebexTransportError,
)


# Larger frames close the socket with 1009 and trigger a reconnect.
MAX_FRAME_SIZE = 2**20


async def connect_websocket(
    url: str,
    *,
    ping_interval: int | None = 20,
    timeout: float = 15.0,
) -> ClientConnection:
    """Open a WebSocket connection to the event endpoint.

    Args:
        url: Secure WebSocket URL of the event endpoint
        ping_interval: Interval for ping frames, None to disable
        timeout: Connection timeout

    Raises:
        WebexAuthenticationError: Handshake rejected with 401 or 403
        WebexInvalidUsage: URL is not a valid WebSocket URI
        WebexTimeout: Connection timed out
        WebexTransportError: Any other network or handshake failure
    """
    try:
        return await asyncio.wait_for(
            websockets.connect(
                url,
                ping_interval=ping_interval,
                close_timeout=5,
                max_size=MAX_FRAME_SIZE,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise WebexTimeout("WebSocket connection timed out", cause=err) from err
    except InvalidURI as err:
        raise WebexInvalidUsage(f"Invalid WebSocket URL: {url}", cause=err) from err
    except InvalidStatus as err:
        status = err.response.status_code
        if status in (401, 403):
            raise WebexAuthenticationError(status) from err
        raise WebexTransportError(
            f"WebSocket handshake rejected with HTTP {status}", cause=err
        ) from err
    except InvalidHandshake as err:
        raise WebexTransportError("WebSocket handshake failed", cause=err) from err
    except (OSError, WebSocketException) as err:
        raise WebexTransportError("WebSocket connection failed", cause=err) from err
