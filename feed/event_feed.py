"""HTTP client for the remote event feed."""
import logging

import requests

from storage.tabular import Table, parse_table

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Raised when the event feed cannot be fetched."""


class EventFeedClient:
    """Client for the published event spreadsheet."""

    def __init__(self, url: str, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            url: Address of the plain-text feed export
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.timeout = timeout

    def fetch_rows(self) -> Table:
        """
        Fetch the feed and parse it into rows.

        Returns:
            Parsed feed document including header rows

        Raises:
            FeedError: If the request fails
        """
        rows = parse_table(self.fetch_feed())
        logger.info(f"Fetched {len(rows)} feed rows")
        return rows

    def fetch_feed(self) -> str:
        """
        Fetch the raw feed text.

        A failed request is not retried; the next scheduled cycle tries again.

        Returns:
            Feed body as text

        Raises:
            FeedError: If the URL is not configured or the request fails
        """
        if not self.url:
            raise FeedError("Event feed URL is not configured")

        try:
            logger.info(f"Fetching event feed from {self.url}")
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Event feed request failed: {e}")
            raise FeedError(f"Failed to fetch event feed: {e}") from e

        # Spreadsheet exports often omit the charset
        if response.encoding is None or response.encoding.lower() == 'iso-8859-1':
            response.encoding = 'utf-8'
        return response.text
