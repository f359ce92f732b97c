"""
Data objects used by the recurrence engine.
"""

from planrecur.objects.event import DEFAULT_COLOR, CalendarEvent
from planrecur.objects.occurrence import ExpandedOccurrence
from planrecur.objects.plan import (
    Cancelled,
    ExceptionType,
    InstanceException,
    Modified,
    Moved,
    Plan,
    instance_exception_from_dict,
)
from planrecur.objects.recurrence import (
    EndType,
    Frequency,
    RecurrenceConfig,
    RecurrenceType,
    shorthand_to_config,
)

__all__ = [
    "CalendarEvent",
    "DEFAULT_COLOR",
    "ExpandedOccurrence",
    "Cancelled",
    "Modified",
    "Moved",
    "InstanceException",
    "ExceptionType",
    "Plan",
    "instance_exception_from_dict",
    "EndType",
    "Frequency",
    "RecurrenceConfig",
    "RecurrenceType",
    "shorthand_to_config",
]
