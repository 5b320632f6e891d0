# Slack incoming webhook transport client
import json
from typing import Optional

import aiohttp

from core.models import SlackPayload

WEBHOOK_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json; charset=utf-8",
}


class SlackWebhookClient:
    def __init__(self, webhook_url: str, logger, session: Optional[aiohttp.ClientSession] = None):
        self.webhook_url = webhook_url
        self.logger = logger
        self.session = session
        self._owns_session = False

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(headers=WEBHOOK_HEADERS)
            self._owns_session = True
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None
            self._owns_session = False

    async def send(self, payload: SlackPayload) -> bool:
        """POST one payload to the webhook. Failures are logged, never raised."""
        if self.session is None:
            raise RuntimeError("SlackWebhookClient must be used as an async context manager")
        body = json.dumps(payload.to_dict(), ensure_ascii=False)
        try:
            async with self.session.post(self.webhook_url, data=body.encode("utf-8"), headers=WEBHOOK_HEADERS) as resp:
                if 200 <= resp.status < 300:
                    self.logger.debug(f"Sent message to Slack channel {payload.channel}")
                    return True
                text = await resp.text()
                self.logger.error(f"Slack webhook failed for channel {payload.channel}: {resp.status} {text}")
                return False
        except Exception as exc:
            self.logger.error(f"Exception sending to Slack webhook for channel {payload.channel}: {exc}", exc_info=True)
            return False
