"""Unit tests for EventProcessor."""
from datetime import datetime, timedelta

import pytest

from processor.event_processor import EventProcessor
from processor.models import Event

HEADER = [
    ["Community events", "", ""],
    ["Name", "Date", "Location", "Category", "Attendance", "Notes"],
]


@pytest.fixture
def processor():
    """Create an EventProcessor with the default one-week window."""
    return EventProcessor()


def make_event(name, starts_at, date="", **kwargs):
    return Event(name=name, date=date, location="Town Hall", starts_at=starts_at, **kwargs)


class TestProcessRows:
    """Test cases for EventProcessor.process_rows."""

    def test_skips_header_rows(self, processor):
        """Test that the first two rows are never treated as events."""
        rows = HEADER + [["Quiz Night", "15 March 2025", "The Crown"]]

        events = processor.process_rows(rows)

        assert len(events) == 1
        event = events[0]
        assert event.name == "Quiz Night"
        assert event.date == "15 March 2025"
        assert event.location == "The Crown"
        assert event.starts_at == datetime(2025, 3, 15)
        assert event.category is None
        assert event.attendance is None
        assert event.notes is None

    def test_skips_header_rows_even_if_they_look_like_events(self, processor):
        """Test that header rows are skipped unconditionally."""
        rows = [
            ["Quiz Night", "15 March 2025", "The Crown"],
            ["Quiz Night", "16 March 2025", "The Crown"],
        ]

        assert processor.process_rows(rows) == []

    def test_reads_optional_columns(self, processor):
        """Test that category, attendance and notes are populated."""
        rows = HEADER + [[
            "Parkrun", "14-16 March 2025", "Riverside",
            "Sport", "Free", "Bring water"
        ]]

        event = processor.process_rows(rows)[0]

        assert event.category == "Sport"
        assert event.attendance == "Free"
        assert event.notes == "Bring water"
        assert event.starts_at == datetime(2025, 3, 14)

    def test_drops_incomplete_rows(self, processor):
        """Test that rows missing a name, date or location are dropped."""
        rows = HEADER + [
            ["Only a name"],
            ["No location", "15 March 2025"],
            ["", "15 March 2025", "Somewhere"],
            ["Blank location", "15 March 2025", "   "],
            ["Complete", "15 March 2025", "Somewhere"],
        ]

        events = processor.process_rows(rows)

        assert [event.name for event in events] == ["Complete"]

    def test_keeps_rows_with_unparseable_dates(self, processor):
        """Test that an undated event is kept but has no start time."""
        rows = HEADER + [["Book Club", "Every Tuesday", "Library"]]

        events = processor.process_rows(rows)

        assert len(events) == 1
        assert events[0].starts_at is None

    def test_handles_document_shorter_than_header(self, processor):
        """Test that a feed with only a header yields no events."""
        assert processor.process_rows(HEADER[:1]) == []


class TestFilterUpcoming:
    """Test cases for EventProcessor.filter_upcoming."""

    def test_includes_event_just_inside_slack(self, processor):
        """Test an event at now + 7 days + 14 hours is announced."""
        now = datetime(2025, 3, 8, 10, 0)
        event = make_event("Borderline", datetime(2025, 3, 16))
        assert event.starts_at - now == timedelta(days=7, hours=14)

        assert processor.filter_upcoming([event], now) == [event]

    def test_excludes_event_past_slack(self, processor):
        """Test an event at now + 7 days + 16 hours is not announced."""
        now = datetime(2025, 3, 8, 8, 0)
        event = make_event("Too late", datetime(2025, 3, 16))
        assert event.starts_at - now == timedelta(days=7, hours=16)

        assert processor.filter_upcoming([event], now) == []

    def test_excludes_undated_events(self, processor):
        """Test that events without a start time are never kept."""
        now = datetime(2025, 3, 8, 10, 0)
        event = make_event("Undated", None, date="Every Tuesday")

        assert processor.filter_upcoming([event], now) == []

    def test_window_start_is_inclusive_and_past_excluded(self, processor):
        """Test that events at now are kept and earlier events dropped."""
        now = datetime(2025, 3, 8)
        at_now = make_event("Now", datetime(2025, 3, 8))
        earlier = make_event("Yesterday", datetime(2025, 3, 7))

        assert processor.filter_upcoming([earlier, at_now], now) == [at_now]

    def test_upper_bound_is_exclusive(self):
        """Test that an event exactly at the window end is dropped."""
        processor = EventProcessor(window_days=7, window_slack_hours=0)
        now = datetime(2025, 3, 8)
        event = make_event("Edge", datetime(2025, 3, 15))

        assert processor.filter_upcoming([event], now) == []

    def test_sorted_by_start_time(self, processor):
        """Test that kept events are ordered chronologically."""
        now = datetime(2025, 3, 8)
        later = make_event("Later", datetime(2025, 3, 12))
        sooner = make_event("Sooner", datetime(2025, 3, 9))

        assert processor.filter_upcoming([later, sooner], now) == [sooner, later]


class TestRenderAnnouncement:
    """Test cases for EventProcessor.render_announcement."""

    def test_render_includes_event_details(self, processor):
        """Test that name, weekday date, location and notes are rendered."""
        event = make_event(
            "Quiz Night", datetime(2025, 3, 15),
            date="15 March 2025", category="Social", notes="Teams of four"
        )

        payload = processor.render_announcement([event])

        assert "**Quiz Night**" in payload
        assert "Saturday 15 March @ Town Hall" in payload
        assert "Social" in payload
        assert "Teams of four" in payload

    def test_render_falls_back_to_raw_date(self, processor):
        """Test that undated events show their original date text."""
        event = make_event("Book Club", None, date="Every Tuesday")

        payload = processor.render_announcement([event])

        assert "Every Tuesday @ Town Hall" in payload

    def test_render_omits_missing_notes(self, processor):
        """Test that an event without notes renders three lines."""
        event = make_event("Parkrun", datetime(2025, 3, 15), date="15 March 2025")

        payload = processor.render_announcement([event])

        assert payload.splitlines()[-2:] == ["**Parkrun**", "Saturday 15 March @ Town Hall"]
