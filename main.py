# Main entrypoint: relay recent Hipchat messages to Slack, one run per invocation
from core.config import AppConfig, ConfigError, load_config
from core.message_formatter import MessageFormatter
from core.message_router import MessageRouter
from core.models import RelayStats
from core.room_mapper import resolve_rooms
from services.history_fetcher import HistoryFetcher
from storage.cursor_repository import CursorRepository
from transports.hipchat_client import HipchatClient
from transports.slack_client import SlackWebhookClient
import logging
import asyncio
import sys
import os


class RelayApp:
    def __init__(self, config: AppConfig, hipchat_client=None, slack_client=None):
        self.config = config
        # Main logger for app-wide events
        self.logger = logging.getLogger("HipchatSlackRelay")
        self.hipchat_logger = self.logger.getChild("Hipchat")
        self.slack_logger = self.logger.getChild("Slack")
        self.cursor_logger = self.logger.getChild("Cursors")

        self.rooms = resolve_rooms(config.rooms, config.slack.channel)
        self.cursor_repo = CursorRepository(config.last_message_ids_file, self.cursor_logger)
        self.hipchat = hipchat_client or HipchatClient(config.hipchat, self.hipchat_logger)
        self.slack = slack_client or SlackWebhookClient(config.slack.webhook_url, self.slack_logger)
        self.fetcher = HistoryFetcher(
            self.hipchat,
            config.hipchat.timezone,
            self.logger,
            skip_failed_rooms=config.relay.skip_failed_rooms,
        )
        self.formatter = MessageFormatter(
            username=config.slack.username,
            icon_emoji=config.slack.icon_emoji,
            source_label=config.hipchat.label,
        )
        self.router = MessageRouter(self.formatter, self.slack, self.logger)

    async def run(self) -> RelayStats:
        cursors = self.cursor_repo.load()
        async with self.hipchat:
            messages, cursors = await self.fetcher.fetch_all(self.rooms, cursors)
        # Cursors are persisted before relaying; a failed send is not retried next run
        self.cursor_repo.save(cursors)

        async with self.slack:
            stats = await self.router.relay(self.rooms, messages)
        self.logger.info(f"Run complete: {stats.sent} sent, {stats.failed} failed, {stats.skipped} skipped")
        return stats


def main() -> int:
    level_name = os.environ.get("RELAY_LOG_LEVEL", "INFO").upper()
    known_level = level_name in logging.getLevelNamesMapping()
    logging.basicConfig(
        level=level_name if known_level else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Suppress noisy INFO logs from third-party libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    if not known_level:
        logging.warning(f"Unknown RELAY_LOG_LEVEL {level_name!r}, using INFO")

    config_path = os.environ.get("RELAY_CONFIG", "config.json")
    try:
        config = load_config(config_path)
        app = RelayApp(config)
    except ConfigError as exc:
        logging.error(f"Invalid configuration: {exc}")
        return 1

    try:
        asyncio.run(app.run())
    except Exception:
        logging.getLogger("HipchatSlackRelay").exception("Relay run failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
