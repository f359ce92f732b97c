"""
Tests for the iCalendar export.

The exported text is read back with icalendar, and the occurrences are
cross-checked with recurring_ical_events, which implements RFC 5545
recurrence independently of planrecur.
"""

from datetime import date, datetime, timedelta, timezone

import icalendar
import pytest
import recurring_ical_events

from planrecur.convert.ical import plan_to_ical
from planrecur.lib.dates import parse_date
from planrecur.objects.plan import Plan
from planrecur.operations.calendar_ops import to_calendar_events


def _weekly():
    return Plan(
        id="plan-1",
        title="Review",
        description="Weekly review",
        start_time="2025-03-03T09:00:00Z",
        end_time="2025-03-03T10:00:00Z",
        recurrence_rule="FREQ=WEEKLY;BYDAY=MO",
        tag_ids=["work", "home"],
    )


_EXCEPTIONS = [
    {"instanceDate": "2025-03-12", "exceptionType": "moved", "originalDate": "2025-03-10"},
    {"instanceDate": "2025-03-17", "exceptionType": "cancelled"},
    {"instanceDate": "2025-03-24", "exceptionType": "modified", "title": "Quarterly review"},
]


def _events(ical_text):
    cal = icalendar.Calendar.from_ical(ical_text)
    return [c for c in cal.walk() if c.name == "VEVENT"]


def _starts(ical_text, start=date(2025, 3, 1), end=date(2025, 4, 1)):
    cal = icalendar.Calendar.from_ical(ical_text)
    events = recurring_ical_events.of(cal).between(start, end)
    return sorted(
        (e["DTSTART"].dt.astimezone(timezone.utc), str(e.get("SUMMARY"))) for e in events
    )


class TestPlanToIcal:
    def test_series(self):
        text = plan_to_ical(_weekly())
        events = _events(text)
        assert len(events) == 1
        event = events[0]
        assert str(event["UID"]) == "plan-1"
        assert str(event["SUMMARY"]) == "Review"
        assert str(event["DESCRIPTION"]) == "Weekly review"
        assert event["DTSTART"].dt == datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)
        assert event["RRULE"]["FREQ"] == ["WEEKLY"]
        assert event["RRULE"]["BYDAY"] == ["MO"]
        assert "CATEGORIES:work,home" in text
        assert "PRODID:-//planrecur//Plan export//EN" in text

    def test_occurrences_agree_with_the_engine(self):
        plan = _weekly()
        text = plan_to_ical(plan, _EXCEPTIONS)
        exported = [start for start, _ in _starts(text)]
        engine = [
            e.start_date
            for e in to_calendar_events(
                plan, "2025-03-01", "2025-03-31", {"plan-1": _EXCEPTIONS}, tz="UTC"
            )
        ]
        assert exported == engine

    @pytest.mark.parametrize(
        "start,fields,first,last",
        [
            ## day 31 falls back to the last day of shorter months
            ("2025-01-31T09:00:00Z", {"recurrence_type": "monthly"}, "2025-01-01", "2025-06-30"),
            ("2025-01-30T09:00:00Z", {"recurrence_rule": "FREQ=MONTHLY;BYMONTHDAY=30"}, "2025-01-01", "2025-06-30"),
            ("2024-02-29T09:00:00Z", {"recurrence_type": "yearly"}, "2024-01-01", "2028-12-31"),
            ## 2025-03-01 is a Saturday, so the anchor itself is no occurrence
            ("2025-03-01T09:00:00Z", {"recurrence_type": "weekdays"}, "2025-03-01", "2025-03-14"),
            ("2025-03-01T09:00:00Z", {"recurrence_rule": "FREQ=WEEKLY;BYDAY=MO,FR;COUNT=3"}, "2025-03-01", "2025-03-31"),
            ("2025-01-15T09:00:00Z", {"recurrence_rule": "FREQ=MONTHLY;BYDAY=FR;BYSETPOS=-1;COUNT=2"}, "2025-01-01", "2025-06-30"),
            ("2025-03-01T09:00:00Z", {"recurrence_type": "weekdays", "recurrence_end_date": "2025-03-02"}, "2025-03-01", "2025-03-31"),
        ],
    )
    def test_clamped_and_filtered_series_agree_with_the_engine(self, start, fields, first, last):
        plan = Plan(id="plan-1", title="Review", start_time=start, **fields)
        exported = [s for s, _ in _starts(plan_to_ical(plan), parse_date(first), parse_date(last) + timedelta(days=1))]
        engine = [e.start_date for e in to_calendar_events(plan, first, last, tz="UTC")]
        assert exported == engine

    def test_month_end_rule(self):
        plan = _weekly()
        plan.start_time = "2025-01-31T09:00:00Z"
        plan.end_time = None
        plan.recurrence_rule = None
        plan.recurrence_type = "monthly"
        event = _events(plan_to_ical(plan))[0]
        assert event["RRULE"]["BYMONTHDAY"] == [28, 29, 30, 31]
        assert event["RRULE"]["BYSETPOS"] == [-1]
        assert [s.date() for s, _ in _starts(plan_to_ical(plan), date(2025, 1, 1), date(2025, 5, 1))] == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
            date(2025, 4, 30),
        ]

    def test_dtstart_is_the_first_occurrence(self):
        plan = _weekly()
        plan.start_time = "2025-03-01T09:00:00Z"
        plan.end_time = "2025-03-01T10:00:00Z"
        plan.recurrence_rule = None
        plan.recurrence_type = "weekdays"
        text = plan_to_ical(plan)
        event = _events(text)[0]
        assert event["DTSTART"].dt == datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)
        assert event["DTEND"].dt == datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)
        assert [s.date() for s, _ in _starts(text, date(2025, 3, 1), date(2025, 3, 8))] == [
            date(2025, 3, d) for d in range(3, 8)
        ]

    def test_exceptions(self):
        text = plan_to_ical(_weekly(), _EXCEPTIONS)
        assert _starts(text) == [
            (datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc), "Review"),
            (datetime(2025, 3, 12, 9, 0, tzinfo=timezone.utc), "Review"),
            (datetime(2025, 3, 24, 9, 0, tzinfo=timezone.utc), "Quarterly review"),
            (datetime(2025, 3, 31, 9, 0, tzinfo=timezone.utc), "Review"),
        ]
        children = [e for e in _events(text) if "RECURRENCE-ID" in e]
        assert sorted(c["RECURRENCE-ID"].dt.date() for c in children) == [
            date(2025, 3, 10),
            date(2025, 3, 24),
        ]

    def test_recurrence_end_date_becomes_until(self):
        plan = _weekly()
        plan.recurrence_rule = "FREQ=WEEKLY;BYDAY=MO;COUNT=10"
        plan.recurrence_end_date = "2025-03-17"
        text = plan_to_ical(plan)
        assert "UNTIL=20250317T235959Z" in text
        assert "COUNT" not in text
        assert len(_starts(text)) == 3

    def test_count(self):
        plan = _weekly()
        plan.recurrence_rule = "FREQ=WEEKLY;BYDAY=MO;COUNT=2"
        assert len(_starts(plan_to_ical(plan))) == 2

    def test_shorthand(self):
        plan = _weekly()
        plan.recurrence_rule = None
        plan.recurrence_type = "daily"
        assert len(_starts(plan_to_ical(plan), end=date(2025, 3, 8))) == 5

    def test_not_recurring(self):
        plan = _weekly()
        plan.recurrence_rule = None
        text = plan_to_ical(plan, _EXCEPTIONS)
        events = _events(text)
        assert len(events) == 1
        assert "RRULE" not in events[0]

    def test_no_start(self):
        with pytest.raises(ValueError):
            plan_to_ical(Plan(id="p", recurrence_type="daily"))
