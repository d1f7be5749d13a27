"""Weekly wall-clock scheduler driving the announcement cycle."""
import logging
import threading
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from announcer.cycle import AnnouncementCycle
from announcer.snapshot import RegistrySnapshot
from processor.models import DeliveryResult

logger = logging.getLogger(__name__)


def next_firing_instant(now: datetime, weekday: int, at: time) -> datetime:
    """
    Return the next occurrence of weekday at the given time strictly after now.

    Local wall-clock arithmetic; DST transitions are not adjusted for.

    Args:
        now: Current local time
        weekday: Day of week, Monday=0 through Sunday=6
        at: Local time of day

    Returns:
        The next firing instant

    Raises:
        OverflowError: If the instant is past the representable date range
        ValueError: If weekday or time are invalid
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be 0-6, got {weekday}")

    days_ahead = (weekday - now.weekday()) % 7
    candidate = datetime.combine(
        now.date() + timedelta(days=days_ahead), at
    ).replace(tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


class WeeklyScheduler:
    """Sleeps until the weekly announcement time and runs the cycle."""

    FALLBACK_INTERVAL = timedelta(days=7)
    MAX_WAIT_SECONDS = 300

    def __init__(
        self,
        cycle: AnnouncementCycle,
        snapshot: RegistrySnapshot,
        weekday: int = 6,
        at: time = time(9, 0),
        clock: Callable[[], datetime] = datetime.now,
        wait: Optional[Callable[[float], bool]] = None,
        compute: Callable[[datetime, int, time], datetime] = next_firing_instant
    ):
        """
        Initialize the scheduler.

        Args:
            cycle: Announcement cycle to run on each firing
            snapshot: Source of the current channel list
            weekday: Day of week to fire on, Monday=0 (default: Sunday)
            at: Local time of day to fire at (default: 09:00)
            clock: Returns the current local time
            wait: Blocks for up to the given seconds, returning True if stopped
            compute: Computes the next firing instant
        """
        self.cycle = cycle
        self.snapshot = snapshot
        self.weekday = weekday
        self.at = at
        self._clock = clock
        self._stop = threading.Event()
        self._wait = wait or self._stop.wait
        self._compute = compute
        self._thread: Optional[threading.Thread] = None

    def next_wake(self, now: datetime) -> datetime:
        """
        Compute when to wake next, falling back to a plain seven-day interval.

        Never raises.
        """
        try:
            return self._compute(now, self.weekday, self.at)
        except Exception as e:
            logger.warning(
                f"Could not compute next announcement time ({e}), "
                f"falling back to {self.FALLBACK_INTERVAL.days} days from now"
            )

        try:
            return now + self.FALLBACK_INTERVAL
        except OverflowError:
            return datetime.max.replace(tzinfo=now.tzinfo)

    def _now(self) -> Optional[datetime]:
        try:
            return self._clock()
        except Exception as e:
            logger.error(
                f"Could not read the clock: {e}",
                extra={'error_type': type(e).__name__}
            )
            return None

    def _sleep_for(self, seconds: float) -> bool:
        """Wait a fixed duration in bounded chunks, returning False if stopped."""
        while seconds > 0:
            chunk = min(seconds, self.MAX_WAIT_SECONDS)
            if self._wait(chunk):
                return False
            seconds -= chunk
        return True

    def sleep_until(self, target: datetime) -> bool:
        """
        Block until the wall clock reaches target.

        Waits in bounded chunks so clock adjustments are picked up. If the
        clock cannot be read, waits one fallback interval instead.

        Returns:
            True if target was reached, False if the scheduler was stopped
        """
        while True:
            now = self._now()
            if now is None:
                return self._sleep_for(self.FALLBACK_INTERVAL.total_seconds())
            remaining = (target - now).total_seconds()
            if remaining <= 0:
                return True
            if self._wait(min(remaining, self.MAX_WAIT_SECONDS)):
                return False

    def trigger(self) -> Optional[DeliveryResult]:
        """
        Run one announcement cycle against the latest channel list.

        Errors abort only this cycle, including a failed clock read.
        """
        destinations = self.snapshot.current()
        started = self._now()
        if started is None:
            logger.error("Skipping announcement cycle, current time unavailable")
            return None
        logger.info(f"Running weekly announcement for {len(destinations)} channels")

        try:
            result = self.cycle.run(destinations, started)
        except Exception as e:
            logger.error(
                f"Announcement cycle failed: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return None

        if result is not None:
            logger.info(
                "Announcement cycle completed",
                extra={'sent': result.sent, 'failed': result.failed}
            )
        return result

    def run_once(self) -> bool:
        """
        Wait for the next firing instant and run the cycle.

        Returns:
            False once the scheduler has been stopped
        """
        now = self._now()
        if now is None:
            logger.info(
                f"Next announcement in {self.FALLBACK_INTERVAL.days} days"
            )
            if not self._sleep_for(self.FALLBACK_INTERVAL.total_seconds()):
                return False
        else:
            wake_at = self.next_wake(now)
            logger.info(f"Next announcement scheduled for {wake_at.isoformat()}")
            if not self.sleep_until(wake_at):
                return False

        self.trigger()
        return not self._stop.is_set()

    def run_forever(self) -> None:
        logger.info("Scheduler loop started")
        while self.run_once():
            pass
        logger.info("Scheduler loop stopped")

    def start(self) -> threading.Thread:
        """Run the scheduler on a daemon thread."""
        self._thread = threading.Thread(target=self.run_forever, name='scheduler', daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Interrupt the sleep; used on process shutdown."""
        self._stop.set()
