"""Runtime configuration read from environment variables."""
import os
from dataclasses import dataclass
from datetime import time
from typing import Mapping, Optional


@dataclass
class AnnouncerConfig:
    """Settings shared by the command loop, scheduler and clients."""
    registry_file: str = 'channels.csv'
    feed_url: str = ''
    discord_api_url: str = 'https://discord.com/api/v10'
    discord_token: str = ''
    discord_application_id: str = ''
    announce_weekday: int = 6
    announce_time: time = time(9, 0)
    window_days: int = 7
    window_slack_hours: int = 15
    timeout_seconds: int = 30
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'AnnouncerConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            AnnouncerConfig instance

        Raises:
            ValueError: If a numeric or time setting is malformed
        """
        env = os.environ if environ is None else environ

        weekday = int(env.get('ANNOUNCE_WEEKDAY', '6'))
        if not 0 <= weekday <= 6:
            raise ValueError(f"ANNOUNCE_WEEKDAY must be 0-6 (Monday-Sunday), got {weekday}")

        return cls(
            registry_file=env.get('REGISTRY_FILE', 'channels.csv'),
            feed_url=env.get('FEED_URL', ''),
            discord_api_url=env.get('DISCORD_API_URL', 'https://discord.com/api/v10'),
            discord_token=env.get('DISCORD_TOKEN', ''),
            discord_application_id=env.get('DISCORD_APPLICATION_ID', ''),
            announce_weekday=weekday,
            announce_time=parse_time_of_day(env.get('ANNOUNCE_TIME', '09:00')),
            window_days=int(env.get('WINDOW_DAYS', '7')),
            window_slack_hours=int(env.get('WINDOW_SLACK_HOURS', '15')),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            log_level=env.get('LOG_LEVEL', 'INFO')
        )


def parse_time_of_day(text: str) -> time:
    """Parse an "HH:MM" string."""
    hours, sep, minutes = text.strip().partition(':')
    if not sep:
        raise ValueError(f"Expected HH:MM time, got {text!r}")
    return time(int(hours), int(minutes))
