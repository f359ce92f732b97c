#!/usr/bin/env python
import logging

__version__ = "1.0.0"

from .convert import config_to_readable, config_to_rule, rule_to_config
from .lib.error import PlanRecurError, RuleParseError
from .objects import CalendarEvent, ExpandedOccurrence, Plan, RecurrenceConfig
from .operations import expand, expand_plans_to_calendar_events, overlay, to_calendar_events

# Silence notification of no default logging handler
log = logging.getLogger("planrecur")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "CalendarEvent",
    "ExpandedOccurrence",
    "Plan",
    "PlanRecurError",
    "RecurrenceConfig",
    "RuleParseError",
    "config_to_readable",
    "config_to_rule",
    "expand",
    "expand_plans_to_calendar_events",
    "overlay",
    "rule_to_config",
    "to_calendar_events",
]
