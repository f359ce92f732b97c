"""
RecurrenceConfig ↔ rule string conversion and rendering.

Public API:
    config_to_rule(config) -> str
    rule_to_config(rule, strict=False) -> RecurrenceConfig
    config_to_readable(config, locale="en") -> str

The iCalendar export lives in :mod:`planrecur.convert.ical`.
"""

from planrecur.convert.readable import config_to_readable
from planrecur.convert.rrule import DEFAULT_CONFIG, config_to_rule, rule_to_config

__all__ = ["config_to_rule", "rule_to_config", "config_to_readable", "DEFAULT_CONFIG"]
