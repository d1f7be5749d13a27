"""One fetch, filter and deliver pass of the weekly announcement."""
import logging
from datetime import datetime
from typing import Optional, Sequence

from feed.event_feed import EventFeedClient
from notifier.delivery import Sender, deliver
from processor.event_processor import EventProcessor
from processor.models import DeliveryResult

logger = logging.getLogger(__name__)


class AnnouncementCycle:
    """Fetches the feed and announces this week's events."""

    def __init__(self, feed_client: EventFeedClient, processor: EventProcessor, send: Sender):
        """
        Initialize the cycle.

        Args:
            feed_client: Client for the remote event feed
            processor: Event processor holding the window settings
            send: Callable taking (channel_id, payload)
        """
        self.feed_client = feed_client
        self.processor = processor
        self.send = send

    def run(self, destinations: Sequence[str], now: datetime) -> Optional[DeliveryResult]:
        """
        Run a single announcement pass.

        Args:
            destinations: Channels to announce to
            now: Instant the cycle began

        Returns:
            DeliveryResult, or None if there was nothing to deliver

        Raises:
            FeedError: If the feed could not be fetched
        """
        if not destinations:
            logger.info("No channels registered, skipping announcement")
            return None

        rows = self.feed_client.fetch_rows()
        events = self.processor.process_rows(rows)
        upcoming = self.processor.filter_upcoming(events, now)

        if not upcoming:
            logger.info("No events in the announcement window, nothing to send")
            return None

        payload = self.processor.render_announcement(upcoming)
        return deliver(destinations, payload, self.send)
