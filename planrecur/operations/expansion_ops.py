"""
Occurrence expansion - Sans-I/O business logic.

Turns a plan (anchor start/end plus a recurrence rule or shorthand) and a
closed date window into the raw, pre-exception list of occurrences.

The walk is a lazy generator over *periods* (one day, week, month or year
times the interval).  Each period yields the dates it contains, and the
number of periods visited is capped by ``max_steps``, so a malformed
config ends the walk instead of hanging it.

Policies:
- The anchor is only an occurrence if it matches the rule's BY* parts.
- ``COUNT`` caps the whole series from the anchor, so occurrences before
  the window still use up the count.
- All comparisons are whole days; time of day is only carried along.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from itertools import islice
from typing import Iterator, Optional, Tuple

from dateutil.relativedelta import relativedelta
from typing_extensions import assert_never

from planrecur.convert.rrule import rule_to_config
from planrecur.lib.dates import (
    day_of,
    format_hhmm,
    js_weekday,
    localize,
    parse_date,
    parse_instant,
    resolve_tz,
    week_start,
)
from planrecur.lib.error import RuleParseError, weirdness
from planrecur.objects.occurrence import ExpandedOccurrence
from planrecur.objects.plan import Plan
from planrecur.objects.recurrence import (
    EndType,
    Frequency,
    RecurrenceConfig,
    RecurrenceType,
    shorthand_to_config,
)

log = logging.getLogger("planrecur")

#: Upper bound on periods visited by one walk
DEFAULT_MAX_STEPS = 1000


def resolve_anchor(
    plan: Plan, zone: Optional[tzinfo] = None
) -> Optional[Tuple[datetime, datetime]]:
    """
    Get the plan's anchor start and end, seen from ``zone``.

    A missing or zero-length end gives an end equal to the start.
    Unparseable timestamps are reported and treated as missing.

    Returns:
        (start, end), or None if the plan has no usable start time
    """
    try:
        start = parse_instant(plan.start_time)
    except ValueError:
        weirdness(f"plan {plan.id} has an unparseable start_time", plan.start_time)
        return None
    if start is None:
        return None
    try:
        end = parse_instant(plan.end_time)
    except ValueError:
        weirdness(f"plan {plan.id} has an unparseable end_time", plan.end_time)
        end = None
    if end is None or end < start:
        end = start
    return localize(start, zone), localize(end, zone)


def resolve_config(plan: Plan, anchor_day: date) -> Optional[RecurrenceConfig]:
    """
    Work out the effective recurrence config for a plan.

    Priority:
    1. ``recurrence_rule``, if it parses
    2. ``recurrence_type`` shorthand, seeded from the anchor day
    3. None - the plan does not recur

    Args:
        plan: The plan
        anchor_day: Calendar day of the anchor start

    Returns:
        RecurrenceConfig or None
    """
    if plan.recurrence_rule:
        try:
            return rule_to_config(plan.recurrence_rule, strict=True)
        except RuleParseError as e:
            log.debug(f"plan {plan.id}: ignoring recurrence_rule ({e})")
    return shorthand_to_config(
        RecurrenceType.parse(plan.recurrence_type),
        anchor_weekday=js_weekday(anchor_day),
        anchor_month_day=anchor_day.day,
    )


def _nth_weekday_of_month(month_start: date, weekdays, set_pos: int) -> list[date]:
    """
    The ``set_pos``-th day in the month whose weekday is in ``weekdays``.

    Negative positions count from the end of the month (-1 = last).
    Returns an empty list if the month has no such day (e.g. a 5th
    Friday).
    """
    month_end = month_start + relativedelta(day=31)
    candidates = [
        month_start + timedelta(days=i)
        for i in range((month_end - month_start).days + 1)
        if js_weekday(month_start + timedelta(days=i)) in weekdays
    ]
    index = set_pos - 1 if set_pos > 0 else set_pos
    if -len(candidates) <= index < len(candidates):
        return [candidates[index]]
    return []


def _dates_in_period(anchor_day: date, config: RecurrenceConfig, period: int) -> list[date]:
    """All candidate dates of period number ``period`` counted from the anchor."""
    units = config.interval * period
    frequency = config.frequency
    if frequency is Frequency.DAILY:
        return [anchor_day + timedelta(days=units)]
    elif frequency is Frequency.WEEKLY:
        if not config.by_weekday:
            return [anchor_day + timedelta(weeks=units)]
        ## bounded scan over the seven days of the selected week
        first = week_start(anchor_day) + timedelta(weeks=units)
        week = [first + timedelta(days=i) for i in range(7)]
        return [d for d in week if js_weekday(d) in config.by_weekday]
    elif frequency is Frequency.MONTHLY:
        month_start = anchor_day + relativedelta(months=units, day=1)
        if config.by_set_pos and config.by_weekday:
            return _nth_weekday_of_month(month_start, config.by_weekday, config.by_set_pos)
        ## relativedelta clamps day=31 to the last day of shorter months
        return [month_start + relativedelta(day=config.by_month_day or anchor_day.day)]
    elif frequency is Frequency.YEARLY:
        return [anchor_day + relativedelta(years=units)]
    else:
        assert_never(frequency)


def _periods_before(anchor_day: date, config: RecurrenceConfig, day: date) -> int:
    """
    Number of whole periods that can be skipped before reaching ``day``.

    Errs on the low side; the walk filters out anything early anyway.
    """
    if day <= anchor_day:
        return 0
    frequency = config.frequency
    if frequency is Frequency.DAILY:
        units = (day - anchor_day).days
    elif frequency is Frequency.WEEKLY:
        units = (week_start(day) - week_start(anchor_day)).days // 7
    elif frequency is Frequency.MONTHLY:
        units = (day.year - anchor_day.year) * 12 + day.month - anchor_day.month
    elif frequency is Frequency.YEARLY:
        units = day.year - anchor_day.year
    else:
        assert_never(frequency)
    return max(0, units // config.interval - 1)


def iter_occurrence_dates(
    anchor_day: date,
    config: RecurrenceConfig,
    max_steps: int = DEFAULT_MAX_STEPS,
    first_period: int = 0,
) -> Iterator[date]:
    """
    Lazily generate occurrence dates from the anchor onwards.

    The sequence is strictly increasing, never earlier than the anchor,
    and finite: at most ``max_steps`` periods are visited.  End
    conditions of the series (COUNT, UNTIL) are left to the caller.

    Args:
        anchor_day: Calendar day of the plan's anchor
        config: Effective recurrence config
        max_steps: Maximum number of periods to visit
        first_period: Period to start at (0 = the anchor's own period)

    Yields:
        Occurrence dates in ascending order
    """
    if config.interval < 1:
        weirdness(f"non-positive interval {config.interval}, nothing to expand")
        return
    last = None
    for period in range(first_period, first_period + max_steps):
        try:
            candidates = _dates_in_period(anchor_day, config, period)
        except (OverflowError, ValueError):
            ## walked off the end of the supported date range
            return
        for day in candidates:
            if day < anchor_day or (last is not None and day <= last):
                continue
            last = day
            yield day
    log.debug(f"recurrence walk from {anchor_day} stopped after {max_steps} periods")


def _hard_stop(plan: Plan, config: RecurrenceConfig, window_end: date) -> date:
    """The earliest of the window end, the plan's end date and the rule's UNTIL"""
    stops = [window_end]
    for value, what in (
        (plan.recurrence_end_date, "recurrence_end_date"),
        (config.end_date if config.end_type is EndType.UNTIL else None, "UNTIL"),
    ):
        try:
            stop = parse_date(value)
        except ValueError:
            weirdness(f"plan {plan.id} has an unparseable {what}", value)
            continue
        if stop is not None:
            stops.append(stop)
    return min(stops)


def expand(
    plan: Plan,
    range_start: str | datetime | date,
    range_end: str | datetime | date,
    tz: str | tzinfo | None = None,
    max_steps: Optional[int] = None,
) -> list[ExpandedOccurrence]:
    """
    Expand a plan into its raw occurrences inside ``[range_start, range_end]``.

    Both window bounds are inclusive whole days.  Exceptions are not
    applied here - see :func:`planrecur.operations.overlay_ops.overlay`.

    Args:
        plan: The plan to expand
        range_start: First day of the window (date or instant)
        range_end: Last day of the window (date or instant)
        tz: Zone to take calendar days and times of day in.  None keeps
            the offset each timestamp carries.
        max_steps: Cap on periods visited, default DEFAULT_MAX_STEPS

    Returns:
        Occurrences in ascending date order.  Empty if the plan has no
        anchor or no recurrence.
    """
    zone = resolve_tz(tz)
    anchor = resolve_anchor(plan, zone)
    if anchor is None:
        return []
    start, end = anchor
    anchor_day = start.date()

    config = resolve_config(plan, anchor_day)
    if config is None:
        return []

    window_start = day_of(range_start, zone)
    window_end = day_of(range_end, zone)
    if window_end < window_start:
        return []
    hard_stop = _hard_stop(plan, config, window_end)

    steps = max_steps or DEFAULT_MAX_STEPS
    if config.end_type is EndType.COUNT and config.count:
        dates = islice(iter_occurrence_dates(anchor_day, config, steps), config.count)
    else:
        first_period = _periods_before(anchor_day, config, window_start)
        dates = iter_occurrence_dates(anchor_day, config, steps, first_period)

    start_time = format_hhmm(start)
    end_time = format_hhmm(end)
    occurrences = []
    for day in dates:
        if day > hard_stop:
            break
        if day < window_start:
            continue
        occurrences.append(
            ExpandedOccurrence(
                date=day, start_time=start_time, end_time=end_time, plan_id=plan.id
            )
        )
    return occurrences
