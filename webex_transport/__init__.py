"""Resilient transport layer for the Webex messaging platform."""

__version__ = "0.1.0"

from .client import WebexClient
from .config import (
    ConfigError,
    ReconnectPolicy,
    RetryPolicy,
    TransportConfig,
    load_config,
)
from .errors import (
    ErrorKind,
    WebexAuthenticationError,
    WebexConnectionClosed,
    WebexDecodeError,
    WebexEncodeError,
    WebexError,
    WebexInvalidUsage,
    WebexProtocolError,
    WebexRateLimited,
    WebexStatusError,
    WebexStatusMessageError,
    WebexTimeout,
    WebexTransportError,
    WebexUncategorized,
    error_from_status,
)
from .http import WebexHttpClient
from .models import ApiRequest, Room, RoomType, WebexEvent
from .retry import RetryBudget
from .session import EventStream, SessionState, WebexEventSession
from .ws import connect_websocket
from .ws_client import WebexWsClient, WsMessage, WsMessageType

__all__ = [
    "ApiRequest",
    "ConfigError",
    "ErrorKind",
    "EventStream",
    "ReconnectPolicy",
    "RetryBudget",
    "RetryPolicy",
    "Room",
    "RoomType",
    "SessionState",
    "TransportConfig",
    "WebexAuthenticationError",
    "WebexClient",
    "WebexConnectionClosed",
    "WebexDecodeError",
    "WebexEncodeError",
    "WebexError",
    "WebexEvent",
    "WebexEventSession",
    "WebexHttpClient",
    "WebexInvalidUsage",
    "WebexProtocolError",
    "WebexRateLimited",
    "WebexStatusError",
    "WebexStatusMessageError",
    "WebexTimeout",
    "WebexTransportError",
    "WebexUncategorized",
    "WebexWsClient",
    "WsMessage",
    "WsMessageType",
    "__version__",
    "connect_websocket",
    "error_from_status",
]
