"""
Plan → iCalendar conversion (RFC 5545).

Public API:
    plan_to_ical(plan, exceptions=None) -> str

Renders one plan and its instance exceptions as a VCALENDAR with a
single series:

- the recurrence becomes an RRULE, with ``recurrence_end_date`` folded
  into UNTIL and month-end days spelt out with BYSETPOS=-1
- DTSTART is the first day the series really yields
- cancelled instances become EXDATE values
- modified and moved instances become child VEVENTs whose RECURRENCE-ID
  is the day the instance was generated for

All instants are written in UTC.  The occurrence days the rule yields
are the UTC days, which match the engine's days for UTC anchors.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import icalendar

from planrecur.convert.rrule import config_to_rule
from planrecur.lib.dates import parse_date, parse_hhmm, parse_instant
from planrecur.objects.plan import Cancelled, Modified, Moved, Plan
from planrecur.objects.recurrence import EndType, Frequency, RecurrenceConfig
from planrecur.operations.expansion_ops import (
    iter_occurrence_dates,
    resolve_anchor,
    resolve_config,
)
from planrecur.operations.overlay_ops import index_exceptions, parse_exceptions


def _clamp_to_month_end(ical_rule: dict, config: RecurrenceConfig, anchor_day: date) -> None:
    """
    Days past the 28th fall back to the last day of shorter months in
    the engine, where a plain BYMONTHDAY would skip those months.
    Spell the fallback out as "the last of these days".
    """
    if config.frequency is Frequency.MONTHLY and not (config.by_set_pos and config.by_weekday):
        day = config.by_month_day or anchor_day.day
        if day > 28:
            ical_rule["BYMONTHDAY"] = list(range(28, day + 1))
            ical_rule["BYSETPOS"] = [-1]
    elif config.frequency is Frequency.YEARLY and (anchor_day.month, anchor_day.day) == (2, 29):
        ical_rule["BYMONTH"] = [2]
        ical_rule["BYMONTHDAY"] = [28, 29]
        ical_rule["BYSETPOS"] = [-1]


def _series_rrule(plan: Plan, anchor_start: datetime) -> tuple[dict, date | None] | None:
    """
    Build the vRecur dict for the plan and the day of its first occurrence.

    The first day is None when the series has no occurrence at all.
    Returns None if the plan does not recur.
    """
    anchor_day = anchor_start.date()
    config = resolve_config(plan, anchor_day)
    if config is None:
        return None
    ical_rule = dict(icalendar.vRecur.from_ical(config_to_rule(config)))
    _clamp_to_month_end(ical_rule, config, anchor_day)

    stops = []
    if config.end_type is EndType.UNTIL and config.end_date:
        stops.append(parse_date(config.end_date))
    if plan.recurrence_end_date:
        stops.append(parse_date(plan.recurrence_end_date))
    last_day = min(stops) if stops else None
    if last_day is not None:
        ical_rule.pop("COUNT", None)
        ## UNTIL is inclusive; keep the whole last day
        ical_rule["UNTIL"] = [
            datetime.combine(last_day, datetime.max.time().replace(microsecond=0)).replace(
                tzinfo=timezone.utc
            )
        ]

    ## DTSTART always counts as an occurrence, so it has to be the first
    ## day the rule really yields rather than the anchor
    first_day = next(iter_occurrence_dates(anchor_day, config), None)
    if first_day is not None and last_day is not None and first_day > last_day:
        first_day = None
    return ical_rule, first_day


def _occurrence_start(anchor_start: datetime, day: date) -> datetime:
    return datetime.combine(day, anchor_start.timetz()).astimezone(timezone.utc)


def _override_start(value, day: date, anchor_start: datetime) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str) and "T" not in value and "-" not in value:
        return datetime.combine(day, parse_hhmm(value), tzinfo=anchor_start.tzinfo)
    return parse_instant(value)


def _child_event(
    plan: Plan,
    anchor_start: datetime,
    duration: timedelta,
    recurrence_day: date,
    day: date,
    overrides: dict,
) -> icalendar.Event:
    child = icalendar.Event()
    child.add("uid", plan.id)
    child.add("dtstamp", datetime.now(tz=timezone.utc))
    child.add("recurrence-id", _occurrence_start(anchor_start, recurrence_day))

    start = _override_start(overrides.get("start_time"), day, anchor_start)
    if start is None:
        start = _occurrence_start(anchor_start, day)
    end = _override_start(overrides.get("end_time"), day, anchor_start)
    if end is None or end < start:
        end = start + duration
    child.add("dtstart", start.astimezone(timezone.utc))
    child.add("dtend", end.astimezone(timezone.utc))

    title = overrides.get("title", plan.title)
    if title:
        child.add("summary", title)
    description = overrides.get("description", plan.description)
    if description:
        child.add("description", description)
    return child


def plan_to_ical(plan: Plan, exceptions=None) -> str:
    """Convert a plan and its exceptions to an iCalendar VCALENDAR string.

    Args:
        plan: The plan.  Must have a start time.
        exceptions: Exception variants or stored exception records.
            Unreadable records are skipped.

    Returns:
        The VCALENDAR as a string.

    Raises:
        ValueError: If the plan has no usable start time, or an end
            date that cannot be parsed.
    """
    anchor = resolve_anchor(plan)
    if anchor is None:
        raise ValueError(f"plan {plan.id} has no start time and cannot be exported")
    anchor_start, anchor_end = anchor
    duration = anchor_end - anchor_start

    cal = icalendar.Calendar()
    cal.add("prodid", "-//planrecur//Plan export//EN")
    cal.add("version", "2.0")

    event = icalendar.Event()
    event.add("uid", plan.id)
    event.add("dtstamp", datetime.now(tz=timezone.utc))
    series = _series_rrule(plan, anchor_start)
    first_start = anchor_start
    if series is not None and series[1] is not None:
        first_start = datetime.combine(series[1], anchor_start.timetz())
    event.add("dtstart", first_start.astimezone(timezone.utc))
    event.add("dtend", (first_start + duration).astimezone(timezone.utc))
    if plan.title:
        event.add("summary", plan.title)
    if plan.description:
        event.add("description", plan.description)
    if plan.tag_ids:
        event.add("categories", [str(t) for t in plan.tag_ids])

    child_events: list[icalendar.Event] = []
    if series is not None:
        rrule, first_day = series
        event.add("rrule", rrule)
        if first_day is None:
            ## nothing to show: the series only holds its DTSTART, drop that too
            event.add("exdate", first_start.astimezone(timezone.utc))
        by_date = index_exceptions(parse_exceptions(exceptions))
        for day, exception in sorted(by_date.items()):
            if isinstance(exception, Cancelled):
                event.add("exdate", _occurrence_start(anchor_start, day))
            elif isinstance(exception, Modified):
                child_events.append(
                    _child_event(plan, anchor_start, duration, day, day, exception.overrides)
                )
            elif isinstance(exception, Moved):
                child_events.append(
                    _child_event(
                        plan,
                        anchor_start,
                        duration,
                        exception.original_date,
                        day,
                        exception.overrides,
                    )
                )

    cal.add_component(event)
    for child in child_events:
        cal.add_component(child)

    return cal.to_ical().decode("utf-8")
