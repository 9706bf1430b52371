"""Protocol helpers for Webex REST responses and event stream frames."""

from __future__ import annotations

import json
import math
import time
import uuid
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any

from .errors import WebexProtocolError
from .models import WebexEvent


def build_auth_frame(token: str, *, frame_id: str | None = None) -> dict[str, Any]:
    """Build the authorization frame sent right after the socket opens."""
    return {
        "id": frame_id or str(uuid.uuid4()),
        "type": "authorization",
        "data": {"token": f"Bearer {token}"},
    }


def build_ack_frame(message_id: str) -> dict[str, Any]:
    """Build the acknowledgement for a delivered event."""
    return {"type": "ack", "messageId": message_id}


def parse_event(raw: str | bytes) -> WebexEvent:
    """Decode one event stream frame.

    Raises:
        WebexProtocolError: If the frame is not a well-formed event.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise WebexProtocolError("event frame is not UTF-8", cause=err) from err

    try:
        frame = json.loads(raw)
    except (ValueError, RecursionError) as err:
        raise WebexProtocolError("event frame is not JSON", cause=err) from err

    if not isinstance(frame, dict):
        raise WebexProtocolError("event frame is not an object")

    data = frame.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("eventType"), str):
        raise WebexProtocolError("event frame has no eventType")

    timestamp = frame.get("timestamp")
    return WebexEvent(
        id=frame.get("id"),
        event_type=data["eventType"],
        data=data,
        timestamp=timestamp if isinstance(timestamp, int) else None,
        tracking_id=frame.get("trackingId"),
    )


def parse_retry_after(value: str | None, *, now: float | None = None) -> float | None:
    """Parse a Retry-After header into seconds.

    Accepts delta-seconds or an HTTP-date. Returns None when absent or
    unparseable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        return max(seconds, 0.0) if math.isfinite(seconds) else None

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    current = now if now is not None else time.time()
    return max(when.timestamp() - current, 0.0)


def extract_error_message(body: Any) -> tuple[str | None, str | None]:
    """Return (message, tracking_id) from a decoded error body."""
    if not isinstance(body, dict):
        return None, None

    tracking_id = body.get("trackingId")
    if not isinstance(tracking_id, str):
        tracking_id = None

    message = body.get("message")
    if isinstance(message, str) and message:
        return message, tracking_id

    errors = body.get("errors")
    if isinstance(errors, list):
        for entry in errors:
            if isinstance(entry, dict) and isinstance(entry.get("description"), str):
                return entry["description"], tracking_id

    return None, tracking_id
