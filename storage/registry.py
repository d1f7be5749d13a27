"""File-backed registry of announcement channels."""
import logging
from pathlib import Path
from typing import List, Optional, Union

from storage.tabular import load_table, write_table

logger = logging.getLogger(__name__)


class DestinationRegistry:
    """Ordered set of channel ids persisted to a flat delimited file."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the registry and load any previously saved channels.

        Args:
            path: Location of the registry file
        """
        self.path = Path(path)
        self._destinations = self.load()
        logger.info(
            f"Initialized DestinationRegistry with {len(self._destinations)} "
            f"channels from {self.path}"
        )

    @property
    def destinations(self) -> List[str]:
        """Copy of the current channel sequence."""
        return list(self._destinations)

    def load(self) -> List[str]:
        """
        Read channel ids from the registry file.

        Takes the first field of every row. A missing, unreadable or empty
        file yields an empty list.

        Returns:
            List of channel ids in file order
        """
        try:
            rows = load_table(self.path)
        except FileNotFoundError:
            logger.info(f"Registry file {self.path} not found, starting empty")
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read registry file {self.path}: {e}")
            return []

        destinations = []
        for row in rows:
            if not row or not row[0]:
                continue
            if row[0] not in destinations:
                destinations.append(row[0])

        return destinations

    def save(self, destinations: List[str]) -> bool:
        """
        Overwrite the registry file with one channel id per row.

        Args:
            destinations: Channel ids to persist

        Returns:
            True if the file was written, False otherwise
        """
        try:
            write_table([[destination] for destination in destinations], self.path)
            return True
        except OSError as e:
            logger.error(
                f"Failed to save registry to {self.path}: {e}",
                extra={'error_type': type(e).__name__}
            )
            return False

    def add(self, destination: str) -> Optional[List[str]]:
        """
        Add a channel if it is not already registered.

        Args:
            destination: Channel id

        Returns:
            The full channel list, or None if it could not be persisted
            or the id is empty
        """
        if not destination:
            logger.warning("Ignoring registration of an empty channel id")
            return None

        if destination in self._destinations:
            logger.debug(f"Channel {destination} already registered")
            return self.destinations

        self._destinations.append(destination)
        logger.info(f"Registered channel {destination}")
        return self._persist()

    def remove(self, destination: str) -> Optional[List[str]]:
        """
        Remove a channel if it is registered.

        Args:
            destination: Channel id

        Returns:
            The full channel list, or None if it could not be persisted
        """
        if destination not in self._destinations:
            logger.debug(f"Channel {destination} not registered")
            return self.destinations

        self._destinations.remove(destination)
        logger.info(f"Unregistered channel {destination}")
        return self._persist()

    def toggle(self, destination: str) -> Optional[List[str]]:
        """Unregister the channel if present, register it otherwise."""
        if destination in self._destinations:
            return self.remove(destination)
        return self.add(destination)

    def _persist(self) -> Optional[List[str]]:
        # The in-memory change is kept even when the write fails.
        if self.save(self._destinations):
            return self.destinations
        return None
