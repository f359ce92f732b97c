"""
Tests for the exception overlay operations layer.
"""

from datetime import date

from planrecur.objects.occurrence import ExpandedOccurrence
from planrecur.objects.plan import Cancelled, ExceptionType, Modified, Moved
from planrecur.operations.overlay_ops import index_exceptions, overlay, parse_exceptions


def _raw(*days):
    return [
        ExpandedOccurrence(date=date(2025, 3, d), start_time="09:00", end_time="10:00", plan_id="p1")
        for d in days
    ]


def _days(occurrences):
    return [o.date.day for o in occurrences]


class TestParseExceptions:
    def test_dicts_become_variants(self):
        exceptions = parse_exceptions(
            [
                {"instanceDate": "2025-03-03", "exceptionType": "cancelled"},
                {"instanceDate": "2025-03-04", "exceptionType": "modified", "title": "T"},
                {
                    "instance_date": "2025-03-06",
                    "exception_type": "moved",
                    "original_date": "2025-03-05",
                },
            ]
        )
        assert exceptions == [
            Cancelled(date(2025, 3, 3)),
            Modified(date(2025, 3, 4), {"title": "T"}),
            Moved(date(2025, 3, 6), date(2025, 3, 5)),
        ]

    def test_variants_pass_through(self):
        cancelled = Cancelled(date(2025, 3, 3))
        assert parse_exceptions([cancelled]) == [cancelled]

    def test_invalid_records_are_skipped(self, caplog):
        exceptions = parse_exceptions(
            [
                {"instanceDate": "2025-03-03", "exceptionType": "postponed"},
                {"exceptionType": "cancelled"},
                {"instanceDate": "2025-03-06", "exceptionType": "moved"},
                {"instanceDate": "not a date", "exceptionType": "cancelled"},
                {"instanceDate": "2025-03-07", "exceptionType": "cancelled"},
            ]
        )
        assert exceptions == [Cancelled(date(2025, 3, 7))]
        assert "skipping invalid instance exception" in caplog.text

    def test_none(self):
        assert parse_exceptions(None) == []


class TestIndexExceptions:
    def test_last_one_wins(self):
        by_date = index_exceptions(
            [Cancelled(date(2025, 3, 3)), Modified(date(2025, 3, 3), {"title": "x"})]
        )
        assert by_date == {date(2025, 3, 3): Modified(date(2025, 3, 3), {"title": "x"})}


class TestOverlay:
    def test_no_exceptions(self):
        raw = _raw(1, 2, 3)
        assert overlay(raw, []) == raw

    def test_cancelled(self):
        result = overlay(_raw(1, 2, 3, 4), [Cancelled(date(2025, 3, 3))])
        assert _days(result) == [1, 2, 4]

    def test_modified(self):
        result = overlay(_raw(1, 2, 3), [Modified(date(2025, 3, 2), {"title": "Modified Title"})])
        assert _days(result) == [1, 2, 3]
        modified = result[1]
        assert modified.is_exception is True
        assert modified.exception_type is ExceptionType.MODIFIED
        assert modified.overrides == {"title": "Modified Title"}
        assert result[0].is_exception is False
        assert result[2].overrides == {}

    def test_inputs_are_not_touched(self):
        raw = _raw(1, 2)
        before = list(raw)
        overlay(raw, [Cancelled(date(2025, 3, 1)), Modified(date(2025, 3, 2), {"title": "x"})])
        assert raw == before
        assert raw[1].is_exception is False

    def test_moved_within_window(self):
        result = overlay(
            _raw(1, 2, 3),
            [Moved(date(2025, 3, 5), date(2025, 3, 2), {"title": "Later"})],
            range_start=date(2025, 3, 1),
            range_end=date(2025, 3, 7),
        )
        assert _days(result) == [1, 3, 5]
        moved = result[-1]
        assert moved.is_exception is True
        assert moved.exception_type is ExceptionType.MOVED
        assert moved.original_date == date(2025, 3, 2)
        assert moved.overrides == {"title": "Later"}
        assert moved.start_time == "09:00"
        assert moved.plan_id == "p1"

    def test_moved_out_of_window(self):
        result = overlay(
            _raw(1, 2, 3),
            [Moved(date(2025, 3, 20), date(2025, 3, 2))],
            range_start="2025-03-01",
            range_end="2025-03-07",
        )
        assert _days(result) == [1, 3]

    def test_moved_into_window_from_outside(self):
        base = ExpandedOccurrence(date=date(2025, 2, 1), start_time="07:00", end_time="08:00", plan_id="p1")
        result = overlay(
            _raw(1, 3),
            [Moved(date(2025, 3, 2), date(2025, 2, 20))],
            range_start="2025-03-01",
            range_end="2025-03-07",
            base=base,
        )
        assert _days(result) == [1, 2, 3]
        assert result[1].start_time == "07:00"

    def test_moved_replaces_occurrence_on_destination(self):
        result = overlay(_raw(1, 2, 3), [Moved(date(2025, 3, 3), date(2025, 3, 1))])
        assert _days(result) == [2, 3]
        assert result[1].exception_type is ExceptionType.MOVED

    def test_moved_without_template(self):
        assert overlay([], [Moved(date(2025, 3, 3), date(2025, 3, 1))]) == []

    def test_stale_exceptions_are_ignored(self):
        raw = _raw(1, 2)
        result = overlay(raw, [Cancelled(date(2025, 3, 9)), Modified(date(2025, 3, 10), {"title": "x"})])
        assert result == raw

    def test_sorted_output(self):
        result = overlay(
            _raw(5, 6, 7),
            [Moved(date(2025, 3, 1), date(2025, 3, 6))],
        )
        assert _days(result) == [1, 5, 7]
