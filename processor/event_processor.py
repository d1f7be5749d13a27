"""Event processor for turning feed rows into an announcement."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from processor.dates import format_event_date, normalize_event_date
from processor.models import Event
from storage.tabular import Table

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for validating, filtering and rendering feed events."""

    HEADER_ROWS = 2
    REQUIRED_FIELDS = 3

    def __init__(self, window_days: int = 7, window_slack_hours: int = 15):
        """
        Initialize the event processor.

        Args:
            window_days: Length of the announcement window in days
            window_slack_hours: Extra hours past the window still announced
        """
        self.window = timedelta(days=window_days, hours=window_slack_hours)

    def process_rows(self, rows: Table) -> List[Event]:
        """
        Convert feed rows into events.

        The first two rows are headers. Rows without a name, date and
        location are dropped.

        Args:
            rows: Parsed feed document

        Returns:
            List of Event objects in feed order
        """
        events = []

        for row in rows[self.HEADER_ROWS:]:
            event = self._row_to_event(row)
            if event:
                events.append(event)

        logger.info(
            f"Read {len(events)} events out of "
            f"{max(len(rows) - self.HEADER_ROWS, 0)} feed rows"
        )
        return events

    def _row_to_event(self, row: List[str]) -> Optional[Event]:
        """
        Build an Event from a single feed row.

        Args:
            row: Fields in feed column order

        Returns:
            Event object or None if a required field is empty
        """
        fields = [field.strip() for field in row]
        if len(fields) < self.REQUIRED_FIELDS or not all(fields[:self.REQUIRED_FIELDS]):
            logger.debug(f"Skipping incomplete feed row: {row}")
            return None

        name, date, location = fields[:self.REQUIRED_FIELDS]
        category, attendance, notes = (
            fields[self.REQUIRED_FIELDS:self.REQUIRED_FIELDS + 3] + [None] * 3
        )[:3]

        starts_at = normalize_event_date(date)

        return Event(
            name=name,
            date=date,
            location=location,
            category=category or None,
            attendance=attendance or None,
            notes=notes or None,
            starts_at=starts_at
        )

    def filter_upcoming(self, events: List[Event], now: datetime) -> List[Event]:
        """
        Keep events starting within the announcement window.

        The window is [now, now + window), ordered by start time. Events
        without a start time are never kept.

        Args:
            events: Events to filter
            now: Start of the window

        Returns:
            Events inside the window sorted by start time
        """
        end = now + self.window
        upcoming = [
            event for event in events
            if event.starts_at is not None and now <= event.starts_at < end
        ]
        upcoming.sort(key=lambda event: event.starts_at)

        logger.info(
            f"{len(upcoming)} of {len(events)} events fall between "
            f"{now.isoformat()} and {end.isoformat()}"
        )
        return upcoming

    def render_announcement(self, events: List[Event]) -> str:
        """
        Render events into a single message.

        Args:
            events: Events to announce

        Returns:
            Message text
        """
        lines = ["**Upcoming events this week**"]

        for event in events:
            when = format_event_date(event.starts_at) if event.starts_at else event.date
            lines.append("")
            lines.append(f"**{event.name}**")
            lines.append(f"{when} @ {event.location}")
            details = [detail for detail in (event.category, event.attendance) if detail]
            if details:
                lines.append(" | ".join(details))
            if event.notes:
                lines.append(event.notes)

        return "\n".join(lines)
