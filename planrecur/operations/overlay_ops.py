"""
Exception overlay - Sans-I/O business logic.

Applies per-date exception records to the raw occurrences of one plan:

- no exception: the occurrence passes through unchanged
- Cancelled: the occurrence is dropped
- Modified: the occurrence stays, flagged, carrying the overrides
- Moved: the occurrence leaves ``original_date`` and appears on
  ``instance_date`` (if that day is inside the window)

The result is a new list sorted by date; the inputs are not touched.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from planrecur.lib.dates import parse_date
from planrecur.lib.error import weirdness
from planrecur.objects.occurrence import ExpandedOccurrence
from planrecur.objects.plan import (
    Cancelled,
    ExceptionType,
    InstanceException,
    Modified,
    Moved,
    instance_exception_from_dict,
)

log = logging.getLogger("planrecur")


def parse_exceptions(records: Optional[Iterable]) -> List[InstanceException]:
    """
    Turn stored exception records (dicts) into exception variants.

    Variants are passed through as they are.  Records that cannot be
    understood are reported and skipped, never raised.
    """
    exceptions: List[InstanceException] = []
    for record in records or []:
        if isinstance(record, (Cancelled, Modified, Moved)):
            exceptions.append(record)
            continue
        try:
            exceptions.append(instance_exception_from_dict(record))
        except (ValueError, TypeError, AttributeError) as e:
            weirdness("skipping invalid instance exception", e)
    return exceptions


def index_exceptions(
    exceptions: Iterable[InstanceException],
) -> Dict[date, InstanceException]:
    """
    Key exceptions by their instance date.

    There should be at most one exception per date; if there are more,
    the last one wins.
    """
    by_date: Dict[date, InstanceException] = {}
    for exception in exceptions:
        if exception.instance_date in by_date:
            log.debug(
                f"duplicate exception for {exception.instance_date}, keeping the last one"
            )
        by_date[exception.instance_date] = exception
    return by_date


def overlay(
    raw: List[ExpandedOccurrence],
    exceptions: Iterable[InstanceException],
    range_start=None,
    range_end=None,
    base: Optional[ExpandedOccurrence] = None,
) -> List[ExpandedOccurrence]:
    """
    Apply exceptions to raw occurrences.

    Cancelled and modified exceptions that match no raw occurrence are
    stale (the rule changed after they were written) and are ignored.
    Moved exceptions are the one way an occurrence can appear outside
    the raw series; the moved instance replaces any raw occurrence
    already on its destination day.

    Args:
        raw: Occurrences from :func:`planrecur.operations.expansion_ops.expand`
        exceptions: Exception variants for the same plan
        range_start: First day a moved instance may land on (inclusive).
            None means unbounded.
        range_end: Last day a moved instance may land on (inclusive).
            None means unbounded.
        base: Occurrence to copy plan id and times of day from when a
            moved instance is created.  Defaults to the first raw
            occurrence; with neither, moved instances cannot be placed.

    Returns:
        Final occurrences in ascending date order
    """
    window_start = parse_date(range_start)
    window_end = parse_date(range_end)
    by_date = index_exceptions(exceptions)
    moved_away = {
        e.original_date: e for e in by_date.values() if isinstance(e, Moved)
    }
    raw_dates = {occurrence.date for occurrence in raw}

    result: Dict[date, ExpandedOccurrence] = {}
    for occurrence in raw:
        if occurrence.date in moved_away:
            continue
        exception = by_date.get(occurrence.date)
        if isinstance(exception, Cancelled):
            continue
        if isinstance(exception, Modified):
            result[occurrence.date] = replace(
                occurrence,
                is_exception=True,
                exception_type=ExceptionType.MODIFIED,
                overrides=dict(exception.overrides),
            )
        else:
            result[occurrence.date] = occurrence

    for day, exception in by_date.items():
        if isinstance(exception, (Cancelled, Modified)) and day not in raw_dates:
            log.debug(f"ignoring stale {exception.exception_type.value} exception for {day}")

    template = base or (raw[0] if raw else None)
    for moved in moved_away.values():
        destination = moved.instance_date
        if window_start is not None and destination < window_start:
            continue
        if window_end is not None and destination > window_end:
            continue
        if template is None:
            log.debug(f"cannot place instance moved to {destination} without a base occurrence")
            continue
        result[destination] = replace(
            template,
            date=destination,
            is_exception=True,
            exception_type=ExceptionType.MOVED,
            overrides=dict(moved.overrides),
            original_date=moved.original_date,
        )

    return [result[day] for day in sorted(result)]
