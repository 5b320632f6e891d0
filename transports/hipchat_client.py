# Hipchat transport client (REST API v2)
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from core.config import HipchatConfig
from core.models import Message, MessageFile


class HipchatError(RuntimeError):
    """Raised when Hipchat answers a history request with a non-success status."""

    def __init__(self, room: str, status: int, body: str = ""):
        super().__init__(f"Hipchat history request for room {room!r} failed: HTTP {status} {body}".rstrip())
        self.room = room
        self.status = status


def _file_size(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def parse_message(item: Dict[str, Any]) -> Message:
    sender = item.get("from") or ""
    # User messages carry an object, notifications a plain name
    if isinstance(sender, dict):
        sender = sender.get("name") or ""
    file_raw = item.get("file")
    file = None
    if file_raw:
        file = MessageFile(
            name=str(file_raw.get("name") or ""),
            url=str(file_raw.get("url") or ""),
            size=_file_size(file_raw.get("size")),
            thumb_url=file_raw.get("thumb_url") or None,
        )
    message_id = item.get("id")
    return Message(
        sender=str(sender),
        date=str(item.get("date") or ""),
        text=str(item.get("message") or ""),
        id=str(message_id) if message_id is not None else None,
        file=file,
    )


class HipchatClient:
    def __init__(self, config: HipchatConfig, logger, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.logger = logger
        self.session = session
        self._owns_session = False

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(headers={
                "Authorization": f"Bearer {self.config.token}",
                "Accept": "application/json",
            })
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None
            self._owns_session = False

    def history_url(self, room: str) -> str:
        # Spaces must become %20, never +
        return f"{self.config.api_url}/v2/room/{quote(room, safe='')}/history/latest"

    async def get_recent_history(self, room: str, timezone: str, not_before: Optional[str] = None) -> List[Message]:
        """Fetch recent messages for a room in chronological order.

        With ``not_before`` the batch starts at that message id, inclusive.
        """
        if self.session is None:
            raise RuntimeError("HipchatClient must be used as an async context manager")
        params = {"timezone": timezone}
        if not_before:
            params["not-before"] = not_before
        url = self.history_url(room)
        self.logger.debug(f"Fetching history for room {room!r} (not-before={not_before})")
        async with self.session.get(url, params=params) as response:
            if response.status != 200:
                body = await response.text()
                raise HipchatError(room, response.status, body)
            data = await response.json()
        if not isinstance(data, dict):
            raise HipchatError(room, response.status, "malformed history body")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise HipchatError(room, response.status, "malformed history body")
        return [parse_message(item) for item in items if isinstance(item, dict)]
