import logging

import pytest

from core.config import parse_config
from core.models import Message


def make_message(message_id, sender="Alice", date="2016-05-10T08:00:00+00:00", text="hello", file=None):
    return Message(sender=sender, date=date, text=text, id=message_id, file=file)


class FakeHipchat:
    """Stands in for HipchatClient: replays queued batches per room and records calls."""

    def __init__(self, batches=None, errors=None):
        self.batches = batches or {}
        self.errors = errors or {}
        self.calls = []
        self.entered = 0
        self.exited = 0

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, *exc_info):
        self.exited += 1

    async def get_recent_history(self, room, timezone, not_before=None):
        self.calls.append((room, timezone, not_before))
        if room in self.errors:
            raise self.errors[room]
        queue = self.batches.get(room) or []
        return list(queue.pop(0)) if queue else []


class FakeSlack:
    """Stands in for SlackWebhookClient and records every payload."""

    def __init__(self, fail_on=None):
        self.fail_on = set(fail_on or [])
        self.payloads = []
        self.open = False
        self.closed = 0

    async def __aenter__(self):
        self.open = True
        return self

    async def __aexit__(self, *exc_info):
        self.open = False
        self.closed += 1

    async def send(self, payload):
        assert self.open, "send outside of the client context"
        self.payloads.append(payload)
        return len(self.payloads) not in self.fail_on


@pytest.fixture
def logger():
    return logging.getLogger("tests")


@pytest.fixture
def raw_config(tmp_path):
    return {
        "hipchat": {"token": "tok", "timezone": "UTC"},
        "slack": {
            "webhook_url": "https://hooks.slack.test/hook",
            "channel": "#general",
            "username": "hipchat",
            "icon_emoji": ":speech_balloon:",
        },
        "rooms": ["General"],
        "last_message_ids_file": str(tmp_path / "last_message_ids.json"),
    }


@pytest.fixture
def app_config(raw_config):
    return parse_config(raw_config)
