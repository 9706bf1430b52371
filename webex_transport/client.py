"""Consumer-facing Webex client.

Combines the REST executor and the event session behind one object that
shares a single immutable credential.
"""

from __future__ import annotations

import logging
from types import TracebackType

import aiohttp

from .config import TransportConfig
from .errors import WebexInvalidUsage
from .http import WebexHttpClient
from .models import Room, RoomType
from .session import EventStream, WebexEventSession

_LOGGER = logging.getLogger(__name__)


class WebexClient:
    """Access layer for rooms and the real-time event stream.

    Usage:
        async with WebexClient(token) as webex:
            rooms = await webex.list_rooms()
            stream = await webex.connect_events()
            async for item in stream:
                ...
    """

    def __init__(
        self,
        token: str,
        *,
        session: aiohttp.ClientSession | None = None,
        config: TransportConfig | None = None,
    ) -> None:
        if not token or not token.strip():
            raise WebexInvalidUsage("token must not be empty")

        self._token = token
        self._config = config or TransportConfig()
        self._session = session
        self._owns_session = session is None
        self._http: WebexHttpClient | None = None
        self._events: WebexEventSession | None = None

    async def __aenter__(self) -> WebexClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def http(self) -> WebexHttpClient:
        """REST executor, created on first use."""
        if self._http is None:
            if self._session is None:
                self._session = aiohttp.ClientSession()
                self._owns_session = True
            self._http = WebexHttpClient(
                self._session,
                self._token,
                base_url=self._config.base_url,
                retry_policy=self._config.retry,
                request_timeout=self._config.request_timeout,
            )
        return self._http

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    async def list_rooms(
        self,
        *,
        room_type: RoomType | None = None,
        max_results: int | None = None,
    ) -> list[Room]:
        return await self.http.list_rooms(room_type=room_type, max_results=max_results)

    async def get_room(self, room_id: str) -> Room:
        return await self.http.get_room(room_id)

    async def create_room(self, title: str, *, team_id: str | None = None) -> Room:
        return await self.http.create_room(title, team_id=team_id)

    async def update_room(self, room_id: str, title: str) -> Room:
        return await self.http.update_room(room_id, title)

    async def delete_room(self, room_id: str) -> None:
        await self.http.delete_room(room_id)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def connect_events(self) -> EventStream:
        """Open the event stream."""
        if self._events is None:
            self._events = WebexEventSession(
                self._token,
                url=self._config.ws_url,
                reconnect_policy=self._config.reconnect,
                ping_interval=self._config.ping_interval,
                connect_timeout=self._config.connect_timeout,
            )
        return await self._events.connect()

    async def close_events(self) -> None:
        """Close the event stream, if open."""
        if self._events is not None:
            await self._events.close()

    async def close(self) -> None:
        """Close the event stream and any HTTP session this client created."""
        await self.close_events()
        if self._owns_session and self._session is not None:
            await self._session.close()
            _LOGGER.debug("HTTP session closed")
        self._session = None
        self._http = None
