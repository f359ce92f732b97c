"""
Calendar view mapping - Sans-I/O business logic.

Maps plans (recurring or not) plus their exception records into the
``CalendarEvent`` view model the calendar renders:

- a plain plan becomes one event with ``id = plan.id``
- a recurring plan is expanded, exceptions are overlaid, and every
  remaining occurrence becomes an event with ``id = {planId}_{YYYY-MM-DD}``

Plans and exception records may be given as objects or as the raw dicts
the storage layer returns.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional

from planrecur.config import get_expansion_params
from planrecur.lib.dates import (
    day_of,
    format_date,
    format_hhmm,
    localize,
    minutes_between,
    parse_hhmm,
    parse_instant,
    resolve_tz,
)
from planrecur.lib.error import assert_, weirdness
from planrecur.objects.event import CalendarEvent
from planrecur.objects.occurrence import ExpandedOccurrence
from planrecur.objects.plan import Plan
from planrecur.operations.expansion_ops import expand, resolve_anchor
from planrecur.operations.overlay_ops import overlay, parse_exceptions

log = logging.getLogger("planrecur")


def _configured_zone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Resolve the zone from PLANRECUR_TIMEZONE or the config file.

    A misspelt zone there is reported and ignored, like other bad
    settings; only a zone passed as an argument raises.
    """
    try:
        return resolve_tz(name)
    except ValueError:
        log.error(f"ignoring configured time zone {name!r}, not a known zone")
        return None


@dataclass(frozen=True)
class ViewSettings:
    """Settings shared by every plan in one mapping call."""

    zone: Optional[tzinfo]
    max_steps: int
    default_color: str

    @classmethod
    def resolve(cls, tz=None, max_steps=None, default_color=None) -> "ViewSettings":
        """
        Fill unset arguments from :func:`planrecur.config.get_expansion_params`

        Raises:
            ValueError: If ``tz`` is given and names no known zone
        """
        params = get_expansion_params(
            timezone=tz if isinstance(tz, str) else None,
            max_steps=max_steps,
            default_color=default_color,
        )
        if isinstance(tz, tzinfo):
            zone = tz
        elif tz is not None:
            zone = resolve_tz(tz)
        else:
            zone = _configured_zone(params["timezone"])
        return cls(
            zone=zone,
            max_steps=params["max_steps"],
            default_color=params["default_color"],
        )


def as_plan(plan: Any) -> Plan:
    """Accept a Plan or a stored plan dict."""
    if isinstance(plan, Plan):
        return plan
    return Plan.from_dict(plan)


def _instant_or_none(plan: Plan, field_name: str) -> Optional[datetime]:
    value = getattr(plan, field_name)
    try:
        return parse_instant(value)
    except ValueError:
        weirdness(f"plan {plan.id} has an unparseable {field_name}", value)
        return None


def _is_multi_day(start: datetime, end: datetime, zone: Optional[tzinfo]) -> bool:
    return localize(start, zone).date() != localize(end, zone).date()


def plan_to_calendar_event(
    plan: Any,
    tz: str | tzinfo | None = None,
    default_color: Optional[str] = None,
    settings: Optional[ViewSettings] = None,
) -> CalendarEvent:
    """
    Map a single plan 1:1 onto a CalendarEvent.

    Missing start or end times become "now", so the calendar always has
    something to draw; the duration of such a plan is 0.

    Args:
        plan: Plan or stored plan dict
        tz: Zone deciding which calendar day an instant falls on
        default_color: Color of the event
        settings: Pre-resolved settings (wins over tz/default_color)

    Returns:
        CalendarEvent with ``id = plan.id``
    """
    plan = as_plan(plan)
    settings = settings or ViewSettings.resolve(tz=tz, default_color=default_color)

    start = _instant_or_none(plan, "start_time")
    end = _instant_or_none(plan, "end_time")
    duration = minutes_between(start, end)
    now = datetime.now(tz=timezone.utc)
    start_date = localize(start or now, settings.zone)
    end_date = localize(end or now, settings.zone)

    return CalendarEvent(
        id=plan.id,
        title=plan.title,
        description=plan.description,
        status=plan.status,
        color=settings.default_color,
        start_date=start_date,
        end_date=end_date,
        display_start_date=start_date,
        display_end_date=end_date,
        duration=duration,
        is_multi_day=_is_multi_day(start_date, end_date, settings.zone),
        is_recurring=plan.is_recurring,
        tag_ids=list(plan.tag_ids),
        reminder_minutes=plan.reminder_minutes,
        created_at=_instant_or_none(plan, "created_at"),
        updated_at=_instant_or_none(plan, "updated_at"),
    )


def plans_to_calendar_events(plans: Iterable[Any], **kwargs) -> List[CalendarEvent]:
    """Map every plan 1:1, without expanding recurrences."""
    settings = ViewSettings.resolve(**kwargs)
    return [plan_to_calendar_event(plan, settings=settings) for plan in plans]


def _override_instant(
    value: Any, occurrence: ExpandedOccurrence, zone: Optional[tzinfo]
) -> Optional[datetime]:
    """
    Resolve a start/end override.

    ``"HH:MM"`` is a time of day on the occurrence's own day; anything
    else is parsed as a full instant.  Unusable values are ignored.
    """
    if value is None:
        return None
    try:
        if isinstance(value, str) and "T" not in value and ":" in value and "-" not in value:
            return datetime.combine(occurrence.date, parse_hhmm(value), tzinfo=zone)
        return parse_instant(value)
    except ValueError:
        weirdness(f"ignoring unusable time override for {occurrence.instance_date}", value)
        return None


def occurrence_to_calendar_event(
    plan: Plan,
    occurrence: ExpandedOccurrence,
    anchor_start: datetime,
    anchor_end: datetime,
    settings: ViewSettings,
) -> CalendarEvent:
    """
    Map one final occurrence of a recurring plan onto a CalendarEvent.

    Overrides win over the plan's own fields; tags always come from the
    plan.
    """
    overrides = occurrence.overrides
    zone = anchor_start.tzinfo

    start = _override_instant(overrides.get("start_time"), occurrence, zone)
    if start is None:
        start = datetime.combine(occurrence.date, anchor_start.timetz())
    end = _override_instant(overrides.get("end_time"), occurrence, zone)
    if end is None or end < start:
        end = start + (anchor_end - anchor_start)
    assert_(end >= start)
    start = localize(start, settings.zone)
    end = localize(end, settings.zone)

    instance_date = format_date(occurrence.date)
    return CalendarEvent(
        id=f"{plan.id}_{instance_date}",
        title=overrides.get("title", plan.title),
        description=overrides.get("description", plan.description),
        status=overrides.get("status", plan.status),
        color=settings.default_color,
        start_date=start,
        end_date=end,
        display_start_date=start,
        display_end_date=end,
        duration=minutes_between(start, end),
        is_multi_day=_is_multi_day(start, end, settings.zone),
        is_recurring=True,
        tag_ids=list(plan.tag_ids),
        reminder_minutes=plan.reminder_minutes,
        created_at=_instant_or_none(plan, "created_at"),
        updated_at=_instant_or_none(plan, "updated_at"),
        original_plan_id=plan.id,
        calendar_id=plan.id,
        instance_date=instance_date,
        is_exception=occurrence.is_exception,
        exception_type=occurrence.exception_type.value if occurrence.exception_type else None,
    )


def expand_occurrences(
    plan: Plan,
    range_start,
    range_end,
    exceptions: Optional[Iterable] = None,
    settings: Optional[ViewSettings] = None,
) -> List[ExpandedOccurrence]:
    """
    Expand a plan and overlay its exceptions.

    This is expansion plus overlay for one plan, without the view
    mapping.
    """
    settings = settings or ViewSettings.resolve()
    anchor = resolve_anchor(plan, settings.zone)
    if anchor is None:
        return []
    raw = expand(plan, range_start, range_end, tz=settings.zone, max_steps=settings.max_steps)
    window_start = day_of(range_start, settings.zone)
    window_end = day_of(range_end, settings.zone)
    start, end = anchor
    base = ExpandedOccurrence(
        date=start.date(),
        start_time=format_hhmm(start),
        end_time=format_hhmm(end),
        plan_id=plan.id,
    )
    return overlay(raw, parse_exceptions(exceptions), window_start, window_end, base=base)


def to_calendar_events(
    plan: Any,
    range_start,
    range_end,
    exceptions_by_plan_id: Optional[Mapping[str, Iterable]] = None,
    tz: str | tzinfo | None = None,
    max_steps: Optional[int] = None,
    default_color: Optional[str] = None,
    settings: Optional[ViewSettings] = None,
) -> List[CalendarEvent]:
    """
    Map one plan to the calendar events visible in ``[range_start, range_end]``.

    A non-recurring plan gives exactly one event (regardless of the
    window).  A recurring plan gives one event per final occurrence, in
    date order; a recurring plan without a start time gives none.

    Args:
        plan: Plan or stored plan dict
        range_start: First day of the window, inclusive
        range_end: Last day of the window, inclusive
        exceptions_by_plan_id: plan id → exception records
        tz: Zone to take calendar days in
        max_steps: Cap on the recurrence walk
        default_color: Color of the events
        settings: Pre-resolved settings (wins over the three above)
    """
    plan = as_plan(plan)
    settings = settings or ViewSettings.resolve(
        tz=tz, max_steps=max_steps, default_color=default_color
    )
    if not plan.is_recurring:
        return [plan_to_calendar_event(plan, settings=settings)]

    anchor = resolve_anchor(plan, settings.zone)
    if anchor is None:
        log.debug(f"recurring plan {plan.id} has no start time, nothing to show")
        return []
    exceptions = (exceptions_by_plan_id or {}).get(plan.id)
    occurrences = expand_occurrences(plan, range_start, range_end, exceptions, settings)
    anchor_start, anchor_end = anchor
    return [
        occurrence_to_calendar_event(plan, occurrence, anchor_start, anchor_end, settings)
        for occurrence in occurrences
    ]


def expand_plans_to_calendar_events(
    plans: Iterable[Any],
    range_start,
    range_end,
    exceptions_by_plan_id: Optional[Mapping[str, Iterable]] = None,
    **kwargs,
) -> List[CalendarEvent]:
    """
    Map a mixed list of plans against one shared window.

    Results are concatenated plan by plan; only the order within one
    plan's instances is meaningful.  Plan records that cannot be read
    are reported and skipped.
    """
    settings = ViewSettings.resolve(**kwargs)
    events: List[CalendarEvent] = []
    for plan in plans:
        try:
            plan = as_plan(plan)
        except (KeyError, TypeError, AttributeError) as e:
            weirdness("skipping unreadable plan record", e)
            continue
        events.extend(
            to_calendar_events(
                plan, range_start, range_end, exceptions_by_plan_id, settings=settings
            )
        )
    return events


def group_exceptions_by_plan(records: Iterable[Dict]) -> Dict[str, List[Dict]]:
    """
    Build the plan id → exception records mapping from a flat list.

    Records are expected to carry ``planId`` or ``plan_id``; order within
    a plan is kept.
    """
    grouped: Dict[str, List[Dict]] = {}
    for record in records:
        plan_id = record.get("planId", record.get("plan_id"))
        if plan_id is None:
            weirdness("exception record without plan id", record)
            continue
        grouped.setdefault(plan_id, []).append(record)
    return grouped
