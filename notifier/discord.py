"""Minimal Discord REST client for posting announcements."""
import logging
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when the Discord API rejects or fails a request."""


class DiscordClient:
    """Client for the parts of the Discord API the announcer uses."""

    DEFAULT_API_URL = "https://discord.com/api/v10"
    MAX_MESSAGE_LENGTH = 2000

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, timeout: int = 30):
        """
        Initialize the Discord client.

        Args:
            token: Bot token
            api_url: Base URL of the versioned REST API
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.token = token
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Authorization': f"Bot {token}"})

    def send_message(self, channel_id: str, content: str) -> Dict[str, Any]:
        """
        Post a message to a channel.

        Content longer than Discord's limit is truncated.

        Args:
            channel_id: Target channel
            content: Message text

        Returns:
            The created message object

        Raises:
            DeliveryError: If the message could not be posted
        """
        if len(content) > self.MAX_MESSAGE_LENGTH:
            logger.warning(
                f"Message of {len(content)} characters truncated for channel {channel_id}"
            )
            content = content[:self.MAX_MESSAGE_LENGTH - 1] + "…"

        return self._post(f"/channels/{channel_id}/messages", {'content': content})

    def register_command(self, application_id: str) -> Dict[str, Any]:
        """
        Register the global "announce" slash command.

        Args:
            application_id: Discord application id

        Returns:
            The created application command object

        Raises:
            DeliveryError: If registration fails
        """
        return self._post(
            f"/applications/{application_id}/commands",
            {
                'name': 'announce',
                'description': 'Toggle announcing in this channel.',
                'type': 1
            }
        )

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON body and decode the JSON response.

        Raises:
            DeliveryError: On transport errors, error statuses or bad JSON
        """
        url = f"{self.api_url}{path}"

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise DeliveryError(f"Request to {path} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = payload.get('message') if isinstance(payload, dict) else None
            raise DeliveryError(
                message or f"Request to {path} failed with status {response.status_code}"
            )

        if not isinstance(payload, dict):
            raise DeliveryError(f"Failed to decode response from {path}")

        return payload
