# Routes fetched Hipchat messages through the formatter to the Slack webhook
from typing import Dict, List, Mapping, Optional

from core.models import Message, RelayStats


class MessageRouter:
    def __init__(self, formatter, slack_client, logger):
        self.formatter = formatter
        self.slack_client = slack_client
        self.logger = logger

    async def relay_room(self, src_room: str, dst_channel: Optional[str], messages: List[Message], stats: RelayStats):
        sent = 0
        for message, payload in self.formatter.format_room(src_room, dst_channel, messages):
            if payload is None:
                stats.skipped += 1
                continue
            # One failed send must not stop the rest of the batch
            if await self.slack_client.send(payload):
                stats.sent += 1
                sent += 1
            else:
                stats.failed += 1
                self.logger.warning(f"Could not relay message {message.id} from room {src_room!r} to {dst_channel}")
        stats.per_room[src_room] = sent

    async def relay(self, rooms: Mapping[str, Optional[str]], messages_by_room: Dict[str, List[Message]]) -> RelayStats:
        stats = RelayStats()
        for src_room, dst_channel in rooms.items():
            messages = messages_by_room.get(src_room) or []
            if not messages:
                stats.per_room[src_room] = 0
                continue
            await self.relay_room(src_room, dst_channel, messages, stats)
            self.logger.info(f"Relayed {stats.per_room[src_room]} of {len(messages)} messages from room {src_room!r} to {dst_channel}")
        return stats
