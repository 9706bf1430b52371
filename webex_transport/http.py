"""HTTP request executor for the Webex REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from .config import DEFAULT_BASE_URL, RetryPolicy
from .errors import (
    WebexDecodeError,
    WebexEncodeError,
    WebexInvalidUsage,
    WebexProtocolError,
    WebexRateLimited,
    WebexTimeout,
    WebexTransportError,
    error_from_status,
)
from .models import ApiRequest, Room, RoomType
from .protocol import extract_error_message, parse_retry_after
from .retry import RetryBudget

_LOGGER = logging.getLogger(__name__)


class WebexHttpClient:
    """Authenticated REST executor with rate-limit aware retries.

    Only 429 responses are retried; every other failure is raised on first
    occurrence.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: RetryPolicy | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self._session = session
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._retry_policy = retry_policy or RetryPolicy()
        self._request_timeout = request_timeout

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def execute(
        self, request: ApiRequest, *, cancel: asyncio.Event | None = None
    ) -> Any:
        """Execute a request and return the decoded JSON body.

        Args:
            request: The outbound call.
            cancel: Optional signal checked between attempts. When set while
                waiting to retry, the last RateLimited error is raised.

        Returns:
            Decoded response body, or None for an empty body.

        Raises:
            WebexError: Exactly one classified error on failure.
        """
        payload = self._encode(request)
        budget = RetryBudget(self._retry_policy)

        while True:
            attempt = budget.start_attempt()
            try:
                return await self._send_once(request, payload, attempt)
            except WebexRateLimited as err:
                delay = budget.next_delay(err.retry_after)
                if delay is None:
                    _LOGGER.warning(
                        "%s %s rate limited, giving up after %d attempts",
                        request.method,
                        request.path,
                        attempt,
                    )
                    raise
                _LOGGER.warning(
                    "%s %s rate limited, retrying in %.1fs (attempt %d)",
                    request.method,
                    request.path,
                    delay,
                    attempt,
                )
                if await self._wait_before_retry(delay, cancel):
                    _LOGGER.debug("%s %s retry cancelled", request.method, request.path)
                    raise

    @staticmethod
    def _encode(request: ApiRequest) -> str | None:
        if request.body is None:
            return None
        try:
            return json.dumps(request.body)
        except (TypeError, ValueError) as err:
            raise WebexEncodeError(
                f"Could not encode body for {request.path}", cause=err
            ) from err

    @staticmethod
    async def _wait_before_retry(delay: float, cancel: asyncio.Event | None) -> bool:
        """Sleep before the next attempt. Returns True if cancelled."""
        if cancel is None:
            await asyncio.sleep(delay)
            return False
        if cancel.is_set():
            return True
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    async def _send_once(
        self, request: ApiRequest, payload: str | None, attempt: int
    ) -> Any:
        url = self._url(request.path)
        _LOGGER.debug("%s %s (attempt %d)", request.method, url, attempt)
        try:
            async with self._session.request(
                request.method,
                url,
                headers=self._headers(payload is not None),
                params=request.params,
                data=payload,
                timeout=aiohttp.ClientTimeout(total=self._request_timeout),
            ) as resp:
                body = await resp.read()
                if 200 <= resp.status < 300:
                    return self._decode(body, request.path)

                # Error bodies may come from proxies in any encoding.
                text = body.decode("utf-8", "replace")
                message, tracking_id = extract_error_message(self._try_decode(text))
                raise error_from_status(
                    resp.status,
                    message=message,
                    retry_after=parse_retry_after(resp.headers.get("Retry-After")),
                    tracking_id=tracking_id,
                )
        except TimeoutError as err:
            raise WebexTimeout(f"{request.method} {request.path} timed out", cause=err) from err
        except aiohttp.ClientError as err:
            raise WebexTransportError(
                f"{request.method} {request.path} failed", cause=err
            ) from err

    @staticmethod
    def _decode(body: bytes, path: str) -> Any:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as err:
            raise WebexDecodeError(f"Response from {path} is not valid text", cause=err) from err
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except (ValueError, RecursionError) as err:
            raise WebexDecodeError(f"Invalid JSON from {path}", cause=err) from err

    @staticmethod
    def _try_decode(text: str) -> Any:
        try:
            return json.loads(text)
        except (ValueError, RecursionError):
            return None

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    async def list_rooms(
        self,
        *,
        room_type: RoomType | None = None,
        max_results: int | None = None,
    ) -> list[Room]:
        """List rooms the authenticated user belongs to."""
        params: dict[str, str] = {}
        if room_type is not None:
            params["type"] = room_type.value
        if max_results is not None:
            if max_results < 1:
                raise WebexInvalidUsage("max_results must be positive")
            params["max"] = str(max_results)

        data = await self.execute(ApiRequest("GET", "/rooms", params=params or None))
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise WebexProtocolError("room list has no 'items' array")
        return [Room.from_dict(item) for item in data["items"]]

    async def get_room(self, room_id: str) -> Room:
        """Fetch one room by identifier."""
        _require("room_id", room_id)
        data = await self.execute(ApiRequest("GET", f"/rooms/{room_id}"))
        return Room.from_dict(data)

    async def create_room(self, title: str, *, team_id: str | None = None) -> Room:
        """Create a group room."""
        _require("title", title)
        body: dict[str, str] = {"title": title}
        if team_id is not None:
            body["teamId"] = team_id
        data = await self.execute(ApiRequest("POST", "/rooms", body=body))
        return Room.from_dict(data)

    async def update_room(self, room_id: str, title: str) -> Room:
        """Rename a room."""
        _require("room_id", room_id)
        _require("title", title)
        data = await self.execute(
            ApiRequest("PUT", f"/rooms/{room_id}", body={"title": title})
        )
        return Room.from_dict(data)

    async def delete_room(self, room_id: str) -> None:
        """Delete a room."""
        _require("room_id", room_id)
        await self.execute(ApiRequest("DELETE", f"/rooms/{room_id}"))


def _require(name: str, value: str) -> None:
    if not value or not value.strip():
        raise WebexInvalidUsage(f"{name} must not be empty")
