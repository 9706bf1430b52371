"""Data shapes recognized by the transport layer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import WebexDecodeError, WebexInvalidUsage, WebexProtocolError

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})


@dataclass(frozen=True)
class ApiRequest:
    """Outbound REST call.

    Attributes:
        method: HTTP method (GET, POST, PUT, DELETE).
        path: Endpoint path relative to the API base URL, e.g. "/rooms".
        body: Optional JSON-serializable request body.
        params: Optional query parameters.
    """

    method: str
    path: str
    body: Any = None
    params: dict[str, str] | None = None

    def __post_init__(self) -> None:
        if self.method not in ALLOWED_METHODS:
            raise WebexInvalidUsage(f"Unsupported HTTP method: {self.method!r}")
        if not self.path or not self.path.startswith("/"):
            raise WebexInvalidUsage(f"Request path must start with '/': {self.path!r}")


class RoomType(Enum):
    """Kind of conversational space."""

    DIRECT = "direct"
    GROUP = "group"


# Wire key -> (attribute name, expected type) for optional Room fields.
_ROOM_OPTIONAL_FIELDS: dict[str, tuple[str, type]] = {
    "title": ("title", str),
    "isLocked": ("is_locked", bool),
    "teamId": ("team_id", str),
    "lastActivity": ("last_activity", str),
    "creatorId": ("creator_id", str),
}


@dataclass(frozen=True)
class Room:
    """A Webex space (room)."""

    id: str
    type: RoomType
    created: str
    title: str | None = None
    is_locked: bool | None = None
    team_id: str | None = None
    last_activity: str | None = None
    creator_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Room:
        """Build a Room from its wire representation."""
        if not isinstance(data, dict):
            raise WebexProtocolError("room entry is not an object")

        for key in ("id", "type", "created"):
            if not isinstance(data.get(key), str):
                raise WebexProtocolError(f"room is missing '{key}'")

        try:
            room_type = RoomType(data["type"])
        except ValueError as err:
            raise WebexProtocolError("unknown room type", cause=err) from err

        optional: dict[str, Any] = {}
        for key, (attr, expected) in _ROOM_OPTIONAL_FIELDS.items():
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, expected):
                raise WebexProtocolError(f"room field '{key}' has the wrong type")
            optional[attr] = value
        return cls(id=data["id"], type=room_type, created=data["created"], **optional)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire representation, omitting unset fields."""
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "created": self.created,
        }
        for key, (attr, _) in _ROOM_OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> Room:
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as err:
            raise WebexDecodeError("room is not valid JSON", cause=err) from err
        return cls.from_dict(data)


@dataclass(frozen=True)
class WebexEvent:
    """Decoded event delivered over the event stream.

    Attributes:
        id: Event identifier, used for acknowledgement.
        event_type: Platform event type, e.g. "conversation.activity".
        data: Full event payload.
        timestamp: Server timestamp in epoch milliseconds, when present.
        tracking_id: Server tracking identifier, when present.
    """

    id: str | None
    event_type: str
    data: dict[str, Any]
    timestamp: int | None = None
    tracking_id: str | None = None
