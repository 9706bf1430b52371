"""Error taxonomy for the Webex transport layer.

Every failure raised by this package is a ``WebexError`` carrying a closed
``ErrorKind`` tag, so callers can branch on ``err.kind`` instead of parsing
messages. Native exceptions are kept on ``err.cause`` and chained with
``raise ... from``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Failure categories shared by the HTTP and WebSocket executors."""

    TRANSPORT_IO = "transport_io"
    DECODE = "decode"
    ENCODE = "encode"
    CONNECTION_CLOSED = "connection_closed"
    HTTP_STATUS = "http_status"
    HTTP_STATUS_WITH_MESSAGE = "http_status_with_message"
    RATE_LIMITED = "rate_limited"
    PROTOCOL_VIOLATION = "protocol_violation"
    AUTHENTICATION = "authentication"
    INVALID_USAGE = "invalid_usage"
    UNCATEGORIZED = "uncategorized"


class WebexError(Exception):
    """Base error for Webex client failures."""

    kind: ErrorKind = ErrorKind.UNCATEGORIZED

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class WebexTransportError(WebexError):
    """Underlying byte stream failed (DNS, TCP reset, TLS)."""

    kind = ErrorKind.TRANSPORT_IO


class WebexTimeout(WebexTransportError):
    """Timeout while communicating with the platform."""


class WebexDecodeError(WebexError):
    """Payload could not be parsed as JSON."""

    kind = ErrorKind.DECODE


class WebexEncodeError(WebexError):
    """Outbound payload could not be serialized."""

    kind = ErrorKind.ENCODE


class WebexConnectionClosed(WebexError):
    """WebSocket session ended before the consumer asked for it."""

    kind = ErrorKind.CONNECTION_CLOSED

    def __init__(self, reason: str, *, code: int | None = None) -> None:
        super().__init__(f"Connection was closed: {reason}")
        self.reason = reason
        self.code = code


class WebexStatusError(WebexError):
    """HTTP response with a non-success status and no further detail."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(
        self,
        status: int,
        message: str | None = None,
        *,
        tracking_id: str | None = None,
    ) -> None:
        super().__init__(message or f"HTTP Status: '{status}'")
        self.status = status
        self.tracking_id = tracking_id


class WebexStatusMessageError(WebexStatusError):
    """HTTP response with a non-success status and a server message."""

    kind = ErrorKind.HTTP_STATUS_WITH_MESSAGE

    def __init__(
        self, status: int, message: str, *, tracking_id: str | None = None
    ) -> None:
        super().__init__(
            status,
            f"HTTP Status: '{status}' Message: {message}",
            tracking_id=tracking_id,
        )
        self.message = message


class WebexRateLimited(WebexError):
    """Request throttled by the platform."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, status: int = 429, retry_after: float | None = None) -> None:
        super().__init__(f"HTTP Status: '{status}' Retry in: {retry_after!r}")
        self.status = status
        self.retry_after = retry_after


class WebexProtocolError(WebexError):
    """Remote service returned data inconsistent with its contract."""

    kind = ErrorKind.PROTOCOL_VIOLATION

    def __init__(
        self, description: str, *, cause: BaseException | None = None
    ) -> None:
        super().__init__(f"Webex API changed: {description}", cause=cause)
        self.description = description


class WebexAuthenticationError(WebexError):
    """Credentials rejected or expired."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, status: int | None = None) -> None:
        super().__init__("Authentication error")
        self.status = status


class WebexInvalidUsage(WebexError):
    """Caller supplied malformed input before any network call."""

    kind = ErrorKind.INVALID_USAGE


class WebexUncategorized(WebexError):
    """Condition with no structured classification."""

    kind = ErrorKind.UNCATEGORIZED


def error_from_status(
    status: int,
    *,
    message: str | None = None,
    retry_after: float | None = None,
    tracking_id: str | None = None,
) -> WebexError:
    """Classify a non-success HTTP status into exactly one error value."""
    if status in (401, 403):
        return WebexAuthenticationError(status)
    if status == 429:
        return WebexRateLimited(status, retry_after)
    if message:
        return WebexStatusMessageError(status, message, tracking_id=tracking_id)
    return WebexStatusError(status, tracking_id=tracking_id)
