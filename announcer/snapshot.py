"""Mutex-guarded handoff of the channel list between the two loops."""
import threading
from typing import Iterable, Tuple


class RegistrySnapshot:
    """Holds the latest committed channel list as an immutable tuple."""

    def __init__(self, destinations: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._destinations: Tuple[str, ...] = tuple(destinations)

    def publish(self, destinations: Iterable[str]) -> None:
        """Replace the visible channel list."""
        frozen = tuple(destinations)
        with self._lock:
            self._destinations = frozen

    def current(self) -> Tuple[str, ...]:
        """Return the latest published channel list."""
        with self._lock:
            return self._destinations
