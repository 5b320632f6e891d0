from typing import Dict, List, Mapping, Optional, Tuple

from core.models import Message


class HistoryFetcher:
    def __init__(self, source, timezone: str, logger, skip_failed_rooms: bool = False):
        # source: anything exposing get_recent_history(room, timezone, not_before)
        self.source = source
        self.timezone = timezone
        self.logger = logger
        self.skip_failed_rooms = skip_failed_rooms

    async def fetch(self, room: str, cursor: Optional[str] = None) -> Tuple[List[Message], Optional[str]]:
        """Return the new messages of a room and its next cursor.

        The history call is inclusive of ``cursor``, so when one is given the first
        message of the batch was already relayed by an earlier run and is dropped.
        The last message of the batch becomes the cursor even when it is that
        dropped message. An empty batch leaves the cursor as it was.
        """
        messages = await self.source.get_recent_history(room, timezone=self.timezone, not_before=cursor)
        if not messages:
            return [], cursor

        new_cursor = messages[-1].id or cursor
        if cursor:
            messages = messages[1:]
        return list(messages), new_cursor

    async def fetch_all(self, rooms: Mapping[str, Optional[str]], cursors: Dict[str, str]) -> Tuple[Dict[str, List[Message]], Dict[str, str]]:
        result: Dict[str, List[Message]] = {}
        updated = dict(cursors)
        for src_room in rooms:
            cursor = updated.get(src_room) or None
            try:
                messages, new_cursor = await self.fetch(src_room, cursor)
            except Exception as exc:
                if not self.skip_failed_rooms:
                    raise
                self.logger.error(f"Failed to fetch history for room {src_room!r}, skipping: {exc}", exc_info=True)
                result[src_room] = []
                continue
            if new_cursor:
                updated[src_room] = new_cursor
            result[src_room] = messages
            self.logger.info(f"Fetched {len(messages)} new messages for room {src_room!r} (cursor {cursor} -> {new_cursor})")
        return result, updated
