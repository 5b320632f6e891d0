# Core data models for the relay
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

@dataclass(frozen=True)
class MessageFile:
    name: str
    url: str
    size: int
    thumb_url: Optional[str] = None

@dataclass(frozen=True)
class Message:
    sender: str
    date: str
    text: str
    id: Optional[str] = None
    file: Optional[MessageFile] = None

@dataclass(frozen=True)
class SlackAttachment:
    title: str
    image_url: Optional[str] = None
    thumb_url: Optional[str] = None
    title_link: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"title": self.title}
        for key in ("image_url", "thumb_url", "title_link"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

@dataclass(frozen=True)
class SlackPayload:
    text: str
    channel: Optional[str]
    username: str
    icon_emoji: str
    attachment: Optional[SlackAttachment] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "text": self.text,
            "channel": self.channel,
            "username": self.username,
            "icon_emoji": self.icon_emoji,
        }
        if self.attachment is not None:
            data["attachments"] = [self.attachment.to_dict()]
        return data

@dataclass
class RelayStats:
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    per_room: Dict[str, int] = field(default_factory=dict)
