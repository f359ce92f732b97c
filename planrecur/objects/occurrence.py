"""
The engine's intermediate result: one dated occurrence of a plan.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from planrecur.lib.dates import format_date
from planrecur.objects.plan import ExceptionType


@dataclass(frozen=True)
class ExpandedOccurrence:
    """A concrete occurrence of a recurring plan.

    Created fresh on every expansion; never persisted.

    Attributes:
        date: The calendar day of this occurrence (destination day for
            moved instances).
        start_time: Anchor time of day, ``"HH:MM"``.
        end_time: Anchor end time of day, ``"HH:MM"``.
        plan_id: Back-reference to the parent plan.
        is_exception: True when an exception record shaped this occurrence.
        exception_type: ``modified`` or ``moved`` when ``is_exception``.
        overrides: Fields the exception overrides.  Carried, not applied -
            the consumer decides how to present them.
        original_date: The day a moved occurrence was moved away from.
    """

    date: date
    start_time: str
    end_time: str
    plan_id: str
    is_exception: bool = False
    exception_type: ExceptionType | None = None
    overrides: dict = field(default_factory=dict)
    original_date: date | None = None

    @property
    def instance_date(self) -> str:
        return format_date(self.date)

    def to_dict(self) -> dict:
        d: dict = {
            "date": self.instance_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "planId": self.plan_id,
            "isException": self.is_exception,
        }
        if self.exception_type is not None:
            d["exceptionType"] = self.exception_type.value
        if self.overrides:
            d["overrides"] = dict(self.overrides)
        if self.original_date is not None:
            d["originalDate"] = format_date(self.original_date)
        return d
