from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List


class ConfigError(ValueError):
    """Raised when the relay configuration is missing or malformed."""


@dataclass(frozen=True)
class HipchatConfig:
    token: str
    timezone: str
    api_url: str = "https://api.hipchat.com"
    label: str = "Hipchat"

@dataclass(frozen=True)
class SlackConfig:
    webhook_url: str
    channel: str
    username: str
    icon_emoji: str

@dataclass(frozen=True)
class RelayOptions:
    skip_failed_rooms: bool = False

@dataclass(frozen=True)
class AppConfig:
    hipchat: HipchatConfig
    slack: SlackConfig
    # Raw room entries: bare names or {room: channel} objects, resolved by core.room_mapper
    rooms: List[Any]
    last_message_ids_file: str
    relay: RelayOptions = field(default_factory=RelayOptions)

    def validate(self) -> None:
        missing = []
        if not self.hipchat.token:
            missing.append("hipchat.token")
        if not self.slack.webhook_url:
            missing.append("slack.webhook_url")
        if not self.last_message_ids_file:
            missing.append("last_message_ids_file")
        if missing:
            raise ConfigError(f"Missing required config: {', '.join(missing)}")


def parse_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    hipchat_raw = raw.get("hipchat") or {}
    slack_raw = raw.get("slack") or {}
    relay_raw = raw.get("relay") or {}
    rooms_raw = raw.get("rooms") or []

    hipchat = HipchatConfig(
        token=str(hipchat_raw.get("token") or ""),
        timezone=str(hipchat_raw.get("timezone") or "UTC"),
        api_url=str(hipchat_raw.get("api_url") or "https://api.hipchat.com").rstrip("/"),
        label=str(hipchat_raw.get("label") or "Hipchat"),
    )

    slack = SlackConfig(
        webhook_url=str(slack_raw.get("webhook_url") or ""),
        channel=str(slack_raw.get("channel") or ""),
        username=str(slack_raw.get("username") or ""),
        icon_emoji=str(slack_raw.get("icon_emoji") or ""),
    )

    relay = RelayOptions(
        skip_failed_rooms=bool(relay_raw.get("skip_failed_rooms", False)),
    )

    # A top-level object is one entry of room -> channel pairs
    if isinstance(rooms_raw, dict):
        rooms = [rooms_raw]
    elif isinstance(rooms_raw, list):
        rooms = list(rooms_raw)
    else:
        raise ConfigError("'rooms' must be a list or an object")

    config = AppConfig(
        hipchat=hipchat,
        slack=slack,
        rooms=rooms,
        last_message_ids_file=str(raw.get("last_message_ids_file") or ""),
        relay=relay,
    )
    config.validate()
    return config


def load_config(path: str) -> AppConfig:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    return parse_config(raw)
