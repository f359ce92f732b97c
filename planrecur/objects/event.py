"""
Calendar view-model event.

One ``CalendarEvent`` is what the calendar renders: either a plain plan
mapped 1:1, or one instance of a recurring plan with a synthetic id of
the form ``{planId}_{YYYY-MM-DD}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

#: Color used when nothing else is configured
DEFAULT_COLOR = "#3b82f6"


def _isoformat(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


@dataclass
class CalendarEvent:
    """A calendar event as consumed by calendar rendering.

    Attributes:
        id: ``plan.id`` for a plain plan, ``{planId}_{YYYY-MM-DD}`` for a
            recurring instance.
        title: Display title; an instance's override wins over the plan's.
        start_date: Start instant.
        end_date: End instant.
        display_start_date: Start instant to draw at (same as
            ``start_date``).
        display_end_date: End instant to draw at (same as ``end_date``).
        duration: Whole minutes from start to end, never negative.
        is_multi_day: Start and end fall on different calendar days.
        description: ``None`` is absent in the serialised form, not ``""``.
        tag_ids: Always inherited from the plan.
        original_plan_id: Parent plan id (recurring instances only).
        calendar_id: Parent plan id (recurring instances only).
        instance_date: ``YYYY-MM-DD`` (recurring instances only).
    """

    id: str
    title: str
    start_date: datetime
    end_date: datetime
    display_start_date: datetime
    display_end_date: datetime
    duration: int = 0
    is_multi_day: bool = False
    is_recurring: bool = False
    description: str | None = None
    status: str = "open"
    color: str = DEFAULT_COLOR
    type: str = "plan"
    tag_ids: list = field(default_factory=list)
    reminder_minutes: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    original_plan_id: str | None = None
    calendar_id: str | None = None
    instance_date: str | None = None
    is_exception: bool = False
    exception_type: str | None = None

    def to_dict(self) -> dict:
        """Serialise to the camelCase view-model dict.

        Instants are ISO 8601 strings.  ``description`` and the
        recurring-instance fields are left out when unset, and
        ``reminder_minutes`` is always present (``None`` preserved).
        """
        d: dict = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "status": self.status,
            "color": self.color,
            "startDate": _isoformat(self.start_date),
            "endDate": _isoformat(self.end_date),
            "displayStartDate": _isoformat(self.display_start_date),
            "displayEndDate": _isoformat(self.display_end_date),
            "duration": self.duration,
            "isMultiDay": self.is_multi_day,
            "isRecurring": self.is_recurring,
            "tagIds": list(self.tag_ids),
            "reminder_minutes": self.reminder_minutes,
        }
        if self.description is not None:
            d["description"] = self.description
        if self.created_at is not None:
            d["createdAt"] = _isoformat(self.created_at)
        if self.updated_at is not None:
            d["updatedAt"] = _isoformat(self.updated_at)
        if self.original_plan_id is not None:
            d["originalPlanId"] = self.original_plan_id
        if self.calendar_id is not None:
            d["calendarId"] = self.calendar_id
        if self.instance_date is not None:
            d["instanceDate"] = self.instance_date
        if self.is_exception:
            d["isException"] = True
            d["exceptionType"] = self.exception_type
        return d
