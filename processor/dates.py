"""Parsing of the free-form event dates used by the feed (e.g. "14-16 March 2025")."""
import calendar
import logging
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class DateParseFailure(Enum):
    """Reasons an event date could not be normalized."""
    TOKEN_COUNT = 'expected "<day> <month> <year>"'
    INVALID_DAY = 'day is not a number or range'
    UNKNOWN_MONTH = 'month name not recognised'
    INVALID_YEAR = 'year is not a number'
    INVALID_DATE = 'day does not exist in that month'


class EventDateError(ValueError):
    """Raised when an event date cannot be parsed."""

    def __init__(self, text: str, reason: DateParseFailure):
        super().__init__(f"Cannot parse event date {text!r}: {reason.value}")
        self.text = text
        self.reason = reason


def _build_month_lookup() -> Dict[str, int]:
    lookup = {}
    for number in range(1, 13):
        lookup[calendar.month_name[number].lower()] = number
        lookup[calendar.month_abbr[number].lower()] = number
    return lookup


# calendar.month_name follows the C locale unless the process changes it
MONTHS = _build_month_lookup()


def parse_event_date(text: str) -> datetime:
    """
    Parse a "<day> <month> <year>" date into local midnight of the start day.

    The day may be a range such as "14-16", in which case the first day is
    used. Month names are matched case-insensitively by full name or
    three-letter abbreviation.

    Args:
        text: Raw date text from the feed

    Returns:
        Naive datetime at 00:00 on the start day

    Raises:
        EventDateError: If the text does not describe a valid date
    """
    tokens = text.strip().split(' ')
    if len(tokens) != 3:
        raise EventDateError(text, DateParseFailure.TOKEN_COUNT)

    day_text, month_text, year_text = tokens

    try:
        day = int(day_text.split('-', 1)[0])
    except ValueError:
        raise EventDateError(text, DateParseFailure.INVALID_DAY) from None

    month = MONTHS.get(month_text.lower())
    if month is None:
        raise EventDateError(text, DateParseFailure.UNKNOWN_MONTH)

    try:
        year = int(year_text)
    except ValueError:
        raise EventDateError(text, DateParseFailure.INVALID_YEAR) from None

    try:
        return datetime(year, month, day)
    except ValueError:
        raise EventDateError(text, DateParseFailure.INVALID_DATE) from None


def normalize_event_date(text: Optional[str]) -> Optional[datetime]:
    """Return the parsed start instant, or None if the date is unusable."""
    if not text:
        return None
    try:
        return parse_event_date(text)
    except EventDateError as e:
        logger.debug(f"No usable event date in {text!r} ({e.reason.name})")
        return None


def format_event_date(starts_at: datetime) -> str:
    """Render a start instant as e.g. "Saturday 15 March"."""
    return (
        f"{calendar.day_name[starts_at.weekday()]} "
        f"{starts_at.day} {calendar.month_name[starts_at.month]}"
    )
