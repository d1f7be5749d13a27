"""Wires the registry, command loop and scheduler into a running service."""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional

from announcer.commands import Command, CommandLoop, CommandQueue
from announcer.config import AnnouncerConfig
from announcer.cycle import AnnouncementCycle
from announcer.scheduler import WeeklyScheduler
from announcer.snapshot import RegistrySnapshot
from feed.event_feed import EventFeedClient
from notifier.discord import DeliveryError, DiscordClient
from processor.event_processor import EventProcessor
from processor.models import DeliveryResult
from storage.registry import DestinationRegistry

logger = logging.getLogger(__name__)


class AnnouncerService:
    """Owns both background loops and the queue the webhook layer feeds."""

    def __init__(
        self,
        config: AnnouncerConfig,
        feed_client: Optional[EventFeedClient] = None,
        discord: Optional[DiscordClient] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Build all components from configuration.

        Args:
            config: Service configuration
            feed_client: Feed client override
            discord: Discord client override
            clock: Returns the current local time
        """
        self.config = config
        self._clock = clock

        self.discord = discord or DiscordClient(
            token=config.discord_token,
            api_url=config.discord_api_url,
            timeout=config.timeout_seconds
        )
        self.feed_client = feed_client or EventFeedClient(
            url=config.feed_url,
            timeout=config.timeout_seconds
        )
        self.processor = EventProcessor(
            window_days=config.window_days,
            window_slack_hours=config.window_slack_hours
        )
        self.cycle = AnnouncementCycle(
            self.feed_client, self.processor, self.discord.send_message
        )

        self.registry = DestinationRegistry(config.registry_file)
        self.snapshot = RegistrySnapshot(self.registry.destinations)
        self.commands = CommandQueue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='announce-now')

        self.command_loop = CommandLoop(
            self.registry, self.snapshot, self.commands, announce=self.announce_now
        )
        self.scheduler = WeeklyScheduler(
            self.cycle,
            self.snapshot,
            weekday=config.announce_weekday,
            at=config.announce_time,
            clock=clock
        )

    def start(self) -> None:
        """Register the slash command and start both loops."""
        if self.config.discord_application_id:
            try:
                self.discord.register_command(self.config.discord_application_id)
                logger.info("Registered announce command")
            except DeliveryError as e:
                logger.error(f"Failed to register announce command: {e}")

        self.command_loop.start()
        self.scheduler.start()
        logger.info(
            "Announcer service started",
            extra={
                'channels': len(self.snapshot.current()),
                'weekday': self.config.announce_weekday,
                'time': self.config.announce_time.strftime('%H:%M')
            }
        )

    def submit(self, command: Command) -> None:
        """Hand a command from the webhook layer to the command loop."""
        self.commands.put(command)

    def announce_now(self, destination: str) -> Future:
        """Run an announcement for one channel on the background executor."""
        return self._executor.submit(self._announce, destination)

    def _announce(self, destination: str) -> Optional[DeliveryResult]:
        try:
            return self.cycle.run([destination], self._clock())
        except Exception as e:
            logger.error(
                f"On-demand announcement to {destination} failed: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return None

    def stop(self) -> None:
        """Close the command queue and interrupt the scheduler."""
        self.commands.close()
        self.scheduler.stop()
        self._executor.shutdown(wait=False)
        logger.info("Announcer service stopping")
