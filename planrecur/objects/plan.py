"""
Plan and per-instance exception records.

A ``Plan`` is the stored task/event definition (only the fields the
recurrence engine and the calendar view care about).  Exceptions are
modelled as a closed set of variants - ``Cancelled``, ``Modified`` and
``Moved`` - so that a cancelled record can never carry overrides and a
moved record always knows where it came from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Union

from planrecur.lib.dates import parse_date
from planrecur.objects.recurrence import RecurrenceType


@dataclass
class Plan:
    """A stored plan record.

    Attributes:
        id: Plan identifier; also the parent id of every generated instance.
        title: Short summary shown in the calendar.
        description: Free text, ``None`` when unset.
        status: Workflow status string, e.g. ``"open"`` or ``"closed"``.
        start_time: Anchor start instant (ISO 8601) or ``None``.
        end_time: Anchor end instant (ISO 8601) or ``None``.
        recurrence_type: Legacy shorthand (``daily``, ``weekly``, ...).
        recurrence_rule: Rule string; wins over ``recurrence_type``.
        recurrence_end_date: ISO date capping the series, independent
            of the rule's own end condition.
        tag_ids: Tag identifiers, inherited by every instance.
        reminder_minutes: Reminder offset, passed through untouched.
    """

    id: str
    title: str = ""
    description: str | None = None
    status: str = "open"
    start_time: str | None = None
    end_time: str | None = None
    recurrence_type: str | None = None
    recurrence_rule: str | None = None
    recurrence_end_date: str | None = None
    tag_ids: list = field(default_factory=list)
    reminder_minutes: int | None = None
    user_id: str | None = None
    completed_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Plan:
        """Construct a Plan from a stored record.

        ``id`` is required; a missing key raises ``KeyError``.
        Unknown keys are silently ignored for forward compatibility.
        """
        tag_ids = data.get("tagIds")
        if tag_ids is None:
            tag_ids = data.get("tag_ids")
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            description=data.get("description"),
            status=data.get("status") or "open",
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            recurrence_type=data.get("recurrence_type"),
            recurrence_rule=data.get("recurrence_rule"),
            recurrence_end_date=data.get("recurrence_end_date"),
            tag_ids=list(tag_ids or []),
            reminder_minutes=data.get("reminder_minutes"),
            user_id=data.get("user_id"),
            completed_at=data.get("completed_at"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    @property
    def is_recurring(self) -> bool:
        """True if a shorthand other than ``none`` is set, or any rule string.

        An empty or unparseable rule still marks the plan as recurring; it
        just yields no occurrences unless the shorthand supplies them.
        """
        if self.recurrence_rule is not None:
            return True
        return RecurrenceType.parse(self.recurrence_type) is not RecurrenceType.NONE


class ExceptionType(str, Enum):
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    MOVED = "moved"


#: Fields an exception may override on a single instance
OVERRIDE_FIELDS = ("title", "description", "status", "start_time", "end_time")

_OVERRIDE_ALIASES = {
    "startTime": "start_time",
    "endTime": "end_time",
}


@dataclass(frozen=True)
class Cancelled:
    """The occurrence on ``instance_date`` does not happen."""

    instance_date: date
    exception_type = ExceptionType.CANCELLED


@dataclass(frozen=True)
class Modified:
    """The occurrence on ``instance_date`` happens with some fields overridden."""

    instance_date: date
    overrides: dict = field(default_factory=dict)
    exception_type = ExceptionType.MODIFIED


@dataclass(frozen=True)
class Moved:
    """The occurrence on ``original_date`` happens on ``instance_date`` instead."""

    instance_date: date
    original_date: date
    overrides: dict = field(default_factory=dict)
    exception_type = ExceptionType.MOVED


InstanceException = Union[Cancelled, Modified, Moved]


def _collect_overrides(data: dict) -> dict:
    overrides: dict = {}
    nested = data.get("overrides") or {}
    for source in (data, nested):
        for key, value in source.items():
            key = _OVERRIDE_ALIASES.get(key, key)
            if key in OVERRIDE_FIELDS and value is not None:
                overrides[key] = value
    return overrides


def instance_exception_from_dict(data: dict) -> InstanceException:
    """Build the right exception variant from a stored exception record.

    Accepts both camelCase (``instanceDate``, ``exceptionType``,
    ``originalDate``) and snake_case keys.  Overrides may be given as an
    ``overrides`` mapping or flattened onto the record itself; the
    mapping wins when both carry the same field.

    Raises:
        ValueError: Unknown exception type, a missing or unparseable
            date, or a ``moved`` record without an original date.
    """
    raw_type = data.get("exceptionType", data.get("exception_type"))
    try:
        exception_type = ExceptionType(raw_type)
    except ValueError:
        raise ValueError(f"Unknown exception type: {raw_type!r}")

    instance_date = parse_date(data.get("instanceDate", data.get("instance_date")))
    if instance_date is None:
        raise ValueError(f"Exception record has no instance date: {data!r}")

    if exception_type is ExceptionType.CANCELLED:
        return Cancelled(instance_date=instance_date)
    overrides = _collect_overrides(data)
    if exception_type is ExceptionType.MODIFIED:
        return Modified(instance_date=instance_date, overrides=overrides)

    original_date = parse_date(data.get("originalDate", data.get("original_date")))
    if original_date is None:
        raise ValueError(f"Moved exception record has no original date: {data!r}")
    return Moved(
        instance_date=instance_date, original_date=original_date, overrides=overrides
    )
