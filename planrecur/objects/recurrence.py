"""
Recurrence configuration objects.

``RecurrenceConfig`` is the structured form of a recurrence rule, the
shape a rule-editing form works with.  The compact text form lives in
:mod:`planrecur.convert.rrule`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from typing_extensions import assert_never


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class EndType(str, Enum):
    NEVER = "never"
    UNTIL = "until"
    COUNT = "count"


class RecurrenceType(str, Enum):
    """The legacy shorthand stored in ``recurrence_type``."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    WEEKDAYS = "weekdays"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: str | RecurrenceType | None) -> RecurrenceType:
        """Unknown or empty values are treated as ``NONE``."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


#: Monday to Friday, 0=Sunday numbering
WEEKDAYS = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class RecurrenceConfig:
    """A structured recurrence definition.

    Attributes:
        frequency: Unit the series repeats in.
        interval: Repeat every N units (>= 1).
        by_weekday: Weekday indices, 0=Sunday ... 6=Saturday, kept sorted.
            Alone it is meaningful for weekly series; together with
            ``by_set_pos`` it expresses "Nth weekday of the month".
        by_month_day: Day of month (1-31) for monthly series.
        by_set_pos: Signed position, -1 = last, 3 = third.
        end_type: How the series ends.
        end_date: Last possible date (ISO ``YYYY-MM-DD``) when
            ``end_type`` is ``until``.
        count: Lifetime number of occurrences when ``end_type`` is
            ``count``.
    """

    frequency: Frequency = Frequency.DAILY
    interval: int = 1
    by_weekday: tuple[int, ...] | None = None
    by_month_day: int | None = None
    by_set_pos: int | None = None
    end_type: EndType = EndType.NEVER
    end_date: str | None = None
    count: int | None = None

    def __post_init__(self) -> None:
        if self.by_weekday is not None:
            object.__setattr__(
                self, "by_weekday", tuple(sorted(set(int(d) % 7 for d in self.by_weekday)))
            )

    @classmethod
    def from_dict(cls, data: dict) -> RecurrenceConfig:
        """Construct from the camelCase form a rule-editing form produces.

        ``frequency`` is required; a missing or unknown value raises
        ``ValueError``.  Unknown keys are silently ignored.
        """
        by_weekday = data.get("byWeekday")
        return cls(
            frequency=Frequency(data["frequency"]),
            interval=int(data.get("interval") or 1),
            by_weekday=tuple(by_weekday) if by_weekday else None,
            by_month_day=data.get("byMonthDay"),
            by_set_pos=data.get("bySetPos"),
            end_type=EndType(data.get("endType") or "never"),
            end_date=data.get("endDate"),
            count=data.get("count"),
        )

    def to_dict(self) -> dict:
        """Serialise to the camelCase form.  Unset optional fields are left out."""
        d: dict = {
            "frequency": self.frequency.value,
            "interval": self.interval,
            "endType": self.end_type.value,
        }
        if self.by_weekday:
            d["byWeekday"] = list(self.by_weekday)
        if self.by_month_day is not None:
            d["byMonthDay"] = self.by_month_day
        if self.by_set_pos is not None:
            d["bySetPos"] = self.by_set_pos
        if self.end_date is not None:
            d["endDate"] = self.end_date
        if self.count is not None:
            d["count"] = self.count
        return d


def shorthand_to_config(
    recurrence_type: RecurrenceType, anchor_weekday: int, anchor_month_day: int
) -> RecurrenceConfig | None:
    """Expand the ``recurrence_type`` shorthand into a full config.

    The anchor seeds the fields the shorthand leaves implicit: ``weekly``
    repeats on the anchor's weekday (0=Sunday numbering), ``monthly`` on
    the anchor's day of month.  ``none`` has no config.
    """
    if recurrence_type is RecurrenceType.NONE:
        return None
    elif recurrence_type is RecurrenceType.DAILY:
        return RecurrenceConfig(frequency=Frequency.DAILY)
    elif recurrence_type is RecurrenceType.WEEKLY:
        return RecurrenceConfig(frequency=Frequency.WEEKLY, by_weekday=(anchor_weekday,))
    elif recurrence_type is RecurrenceType.WEEKDAYS:
        return RecurrenceConfig(frequency=Frequency.WEEKLY, by_weekday=WEEKDAYS)
    elif recurrence_type is RecurrenceType.MONTHLY:
        return RecurrenceConfig(frequency=Frequency.MONTHLY, by_month_day=anchor_month_day)
    elif recurrence_type is RecurrenceType.YEARLY:
        return RecurrenceConfig(frequency=Frequency.YEARLY)
    else:
        assert_never(recurrence_type)
