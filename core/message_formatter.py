# Converts Hipchat messages into Slack webhook payloads
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Tuple

from core.models import Message, MessageFile, SlackAttachment, SlackPayload

# Hipchat posts an extra message per shared link under this sender
LINK_PREVIEW_SENDER = "Link"
# Consecutive messages from one sender within this many seconds share a header
GROUPING_WINDOW_SECONDS = 300


@dataclass
class GroupingState:
    previous_sender: str = ""
    previous_timestamp: float = 0


def parse_timestamp(date: str) -> float:
    if not date:
        return 0
    value = date.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def build_attachment(file: MessageFile) -> SlackAttachment:
    if file.thumb_url:
        # Images come with a thumbnail
        return SlackAttachment(title=file.name, image_url=file.url, thumb_url=file.thumb_url)
    return SlackAttachment(title=f"{file.name} ({file.size} B)", title_link=file.url)


class MessageFormatter:
    def __init__(self, username: str, icon_emoji: str, source_label: str = "Hipchat"):
        self.username = username
        self.icon_emoji = icon_emoji
        self.source_label = source_label

    def header(self, source_room: str, message: Message) -> str:
        return f"*[From {self.source_label}, {source_room}, {message.sender}, {message.date}]*"

    def format(self, source_room: str, channel: Optional[str], message: Message, state: GroupingState) -> Optional[SlackPayload]:
        """Build the payload for one message, or None when it must not be relayed.

        ``state`` carries the previous sender and timestamp of the room and is
        updated in place.
        """
        if message.sender == LINK_PREVIEW_SENDER:
            return None

        timestamp = parse_timestamp(message.date)
        text = message.text
        if message.sender != state.previous_sender or (timestamp - state.previous_timestamp) > GROUPING_WINDOW_SECONDS:
            text = f"{self.header(source_room, message)}\n\n{text}"

        state.previous_sender = message.sender
        state.previous_timestamp = timestamp

        attachment = build_attachment(message.file) if message.file else None
        return SlackPayload(
            text=text,
            channel=channel,
            username=self.username,
            icon_emoji=self.icon_emoji,
            attachment=attachment,
        )

    def format_room(self, source_room: str, channel: Optional[str], messages: Iterable[Message]) -> Iterator[Tuple[Message, Optional[SlackPayload]]]:
        """Yield each message of a room batch with its payload, None for skipped ones.

        Grouping state starts fresh for every room.
        """
        state = GroupingState()
        for message in messages:
            yield message, self.format(source_room, channel, message, state)
