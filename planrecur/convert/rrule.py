"""
RecurrenceConfig ↔ rule string conversion.

Public API:
    config_to_rule(config) -> str
    rule_to_config(rule, strict=False) -> RecurrenceConfig

The rule string is a deliberate subset of the RFC 5545 RRULE grammar:
``KEY=VALUE`` pairs joined by ``;`` with keys drawn from FREQ, INTERVAL,
BYDAY, BYMONTHDAY, BYSETPOS, UNTIL and COUNT.  ``BYDAY`` holds two-letter
weekday codes, ``UNTIL`` is ``YYYYMMDD``.
"""

from __future__ import annotations

import logging

from planrecur.lib.dates import format_date, format_rule_date, parse_date
from planrecur.lib.error import RuleParseError
from planrecur.objects.recurrence import EndType, Frequency, RecurrenceConfig

log = logging.getLogger("planrecur")

#: Two-letter weekday code → 0=Sunday based index
_BYDAY_TO_INDEX = {
    "SU": 0,
    "MO": 1,
    "TU": 2,
    "WE": 3,
    "TH": 4,
    "FR": 5,
    "SA": 6,
}

_INDEX_TO_BYDAY = {v: k for k, v in _BYDAY_TO_INDEX.items()}

_FREQ_MAP = {
    "DAILY": Frequency.DAILY,
    "WEEKLY": Frequency.WEEKLY,
    "MONTHLY": Frequency.MONTHLY,
    "YEARLY": Frequency.YEARLY,
}

#: Returned for rules that cannot be understood at all
DEFAULT_CONFIG = RecurrenceConfig()


def _monday_first(index: int) -> int:
    return (index - 1) % 7


def _byday_value(weekdays) -> str:
    return ",".join(_INDEX_TO_BYDAY[d] for d in sorted(weekdays, key=_monday_first))


def config_to_rule(config: RecurrenceConfig) -> str:
    """Serialise a RecurrenceConfig to a rule string.

    Token order is fixed - FREQ, INTERVAL, BYDAY, BYMONTHDAY/BYSETPOS,
    UNTIL/COUNT - so the same config always gives the same string.
    ``INTERVAL`` is left out when it is 1, and BY* parts that do not
    apply to the frequency are left out.

    Examples:
        weekly, interval 2, Mon/Wed/Fri → "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE,FR"
        monthly, last Friday             → "FREQ=MONTHLY;BYDAY=FR;BYSETPOS=-1"
    """
    parts = [f"FREQ={config.frequency.value.upper()}"]

    if config.interval and config.interval != 1:
        parts.append(f"INTERVAL={config.interval}")

    if config.frequency is Frequency.WEEKLY and config.by_weekday:
        parts.append(f"BYDAY={_byday_value(config.by_weekday)}")
    elif config.frequency is Frequency.MONTHLY:
        if config.by_set_pos and config.by_weekday:
            parts.append(f"BYDAY={_byday_value(config.by_weekday)}")
            parts.append(f"BYSETPOS={config.by_set_pos}")
        elif config.by_month_day is not None:
            parts.append(f"BYMONTHDAY={config.by_month_day}")

    if config.end_type is EndType.UNTIL and config.end_date:
        try:
            parts.append(f"UNTIL={format_rule_date(parse_date(config.end_date))}")
        except ValueError:
            log.debug(f"Dropping unparseable end date {config.end_date!r}")
    elif config.end_type is EndType.COUNT and config.count:
        parts.append(f"COUNT={config.count}")

    return ";".join(parts)


def _parse_int(value: str) -> int | None:
    try:
        return int(value.split(",")[0].strip())
    except ValueError:
        return None


def _parse_byday(value: str) -> tuple[list[int], int | None]:
    """``"MO,WE"`` → ([1, 3], None);  ``"-1FR"`` → ([5], -1)

    The embedded-ordinal form is understood so that rules written by
    other calendar software keep their meaning.  Unknown tokens are
    dropped.
    """
    weekdays: list[int] = []
    ordinal = None
    for token in value.split(","):
        s = token.strip().upper()
        day_abbr = s.lstrip("+-0123456789")
        nth_str = s[: len(s) - len(day_abbr)]
        if day_abbr not in _BYDAY_TO_INDEX:
            continue
        weekdays.append(_BYDAY_TO_INDEX[day_abbr])
        if nth_str and ordinal is None:
            ordinal = _parse_int(nth_str)
    return weekdays, ordinal


def _split_rule(rule: str) -> dict:
    pairs: dict = {}
    if rule.upper().startswith("RRULE:"):
        rule = rule[6:]
    for part in rule.split(";"):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        key = key.strip().upper()
        if key and key not in pairs:
            pairs[key] = value.strip()
    return pairs


def rule_to_config(rule: str | None, strict: bool = False) -> RecurrenceConfig:
    """Parse a rule string into a RecurrenceConfig.

    Unknown keys are ignored, a missing ``INTERVAL`` means 1 and a rule
    without ``UNTIL``/``COUNT`` never ends.  Malformed values degrade to
    those defaults instead of failing.  If both ``UNTIL`` and ``COUNT``
    are given, ``UNTIL`` wins.

    Args:
        rule: The rule string, optionally prefixed with ``RRULE:``.
        strict: Raise instead of returning the default config when the
            rule has no usable ``FREQ``.

    Returns:
        The parsed config, or ``DEFAULT_CONFIG`` (daily, never ending)
        when ``FREQ`` is absent or unknown and ``strict`` is False.

    Raises:
        RuleParseError: If ``strict`` is set and ``FREQ`` is absent or
            unknown.
    """
    pairs = _split_rule(rule or "")

    freq = _FREQ_MAP.get(pairs.get("FREQ", "").upper())
    if freq is None:
        if "FREQ" in pairs:
            reason = f"unknown FREQ value {pairs['FREQ']!r}"
        else:
            reason = "FREQ is missing"
        if strict:
            raise RuleParseError(rule=rule, reason=reason)
        log.debug(f"Falling back to default recurrence for rule {rule!r}: {reason}")
        return DEFAULT_CONFIG

    interval = _parse_int(pairs.get("INTERVAL", "1"))
    if not interval or interval < 1:
        interval = 1

    by_weekday: list[int] = []
    by_set_pos = None
    if "BYDAY" in pairs:
        by_weekday, by_set_pos = _parse_byday(pairs["BYDAY"])
    if "BYSETPOS" in pairs:
        by_set_pos = _parse_int(pairs["BYSETPOS"]) or by_set_pos

    by_month_day = None
    if "BYMONTHDAY" in pairs:
        by_month_day = _parse_int(pairs["BYMONTHDAY"])
        if by_month_day is not None and not 1 <= by_month_day <= 31:
            by_month_day = None

    end_type = EndType.NEVER
    end_date = None
    count = None
    if "UNTIL" in pairs:
        try:
            until = parse_date(pairs["UNTIL"])
        except ValueError:
            until = None
        if until is not None:
            end_type = EndType.UNTIL
            end_date = format_date(until)
    if end_type is EndType.NEVER and "COUNT" in pairs:
        count = _parse_int(pairs["COUNT"])
        if count and count > 0:
            end_type = EndType.COUNT
        else:
            count = None

    ## Keep only the parts that mean something for this frequency
    if freq is Frequency.WEEKLY:
        by_month_day = None
        by_set_pos = None
    elif freq is Frequency.MONTHLY:
        if by_set_pos and by_weekday:
            by_month_day = None
        else:
            by_weekday = []
            by_set_pos = None
    else:
        by_weekday = []
        by_month_day = None
        by_set_pos = None

    return RecurrenceConfig(
        frequency=freq,
        interval=interval,
        by_weekday=tuple(by_weekday) if by_weekday else None,
        by_month_day=by_month_day,
        by_set_pos=by_set_pos,
        end_type=end_type,
        end_date=end_date,
        count=count,
    )
