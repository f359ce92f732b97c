"""
Human-readable rendering of a RecurrenceConfig.

Public API:
    config_to_readable(config, locale=None) -> str

Purely presentational.  English and Japanese phrases are built in; any
other locale falls back to English.  Without a locale, the configured
one is used (see planrecur.config).
"""

from __future__ import annotations

import logging

from planrecur.config import get_expansion_params
from planrecur.objects.recurrence import WEEKDAYS, EndType, Frequency, RecurrenceConfig

log = logging.getLogger("planrecur")

_PHRASES = {
    "en": {
        "every_unit": {
            Frequency.DAILY: "daily",
            Frequency.WEEKLY: "weekly",
            Frequency.MONTHLY: "monthly",
            Frequency.YEARLY: "yearly",
        },
        "every_n_units": {
            Frequency.DAILY: "every {n} days",
            Frequency.WEEKLY: "every {n} weeks",
            Frequency.MONTHLY: "every {n} months",
            Frequency.YEARLY: "every {n} years",
        },
        "weekday_names": ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
        "long_weekday_names": [
            "Sunday",
            "Monday",
            "Tuesday",
            "Wednesday",
            "Thursday",
            "Friday",
            "Saturday",
        ],
        "weekday_join": "/",
        "weekdays": "weekdays",
        "all_days": "every day",
        "month_day": "on day {day}",
        "set_pos": "{pos} {days}",
        "last": "last",
        "nth_last": "{nth} to last",
        "until": "until {date}",
        "count_one": "1 occurrence",
        "count": "{count} occurrences",
        "separator": ", ",
    },
    "ja": {
        "every_unit": {
            Frequency.DAILY: "毎日",
            Frequency.WEEKLY: "毎週",
            Frequency.MONTHLY: "毎月",
            Frequency.YEARLY: "毎年",
        },
        "every_n_units": {
            Frequency.DAILY: "{n}日ごと",
            Frequency.WEEKLY: "{n}週間ごと",
            Frequency.MONTHLY: "{n}ヶ月ごと",
            Frequency.YEARLY: "{n}年ごと",
        },
        "weekday_names": ["日", "月", "火", "水", "木", "金", "土"],
        "long_weekday_names": [
            "日曜日",
            "月曜日",
            "火曜日",
            "水曜日",
            "木曜日",
            "金曜日",
            "土曜日",
        ],
        "weekday_join": "・",
        "weekdays": "平日",
        "all_days": "全曜日",
        "month_day": "{day}日",
        "set_pos": "{pos}{days}",
        "last": "最終",
        "nth_last": "最後から{n}番目の",
        "until": "{date}まで",
        "count_one": "1回",
        "count": "{count}回",
        "separator": "、",
    },
}


def _ordinal_en(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _position(pos: int, locale: str, phrases: dict) -> str:
    if pos == -1:
        return phrases["last"]
    if locale == "ja":
        if pos < 0:
            return phrases["nth_last"].format(n=-pos)
        return f"第{pos}"
    if pos < 0:
        return phrases["nth_last"].format(nth=_ordinal_en(-pos))
    return _ordinal_en(pos)


def _weekday_list(weekdays, phrases: dict, long_names: bool = False) -> str:
    names = phrases["long_weekday_names"] if long_names else phrases["weekday_names"]
    ## Monday first, the way a week is drawn in the rule editor
    ordered = sorted(weekdays, key=lambda d: (d - 1) % 7)
    return phrases["weekday_join"].join(names[d] for d in ordered)


def config_to_readable(config: RecurrenceConfig, locale: str | None = None) -> str:
    """Render a short phrase describing the recurrence.

    Examples (``en``):
        "every 2 weeks, Mon/Wed/Fri"
        "monthly, last Friday"
        "daily, 10 occurrences"
        "weekly, weekdays, until 2025-12-31"

    Examples (``ja``):
        "毎月、最終金曜日"
        "2週間ごと、月・水・金"
    """
    if locale is None:
        locale = get_expansion_params()["locale"]
    lang = (locale or "en").split("-")[0].split("_")[0].lower()
    if lang not in _PHRASES:
        log.debug(f"No phrases for locale {locale!r}, using English")
        lang = "en"
    phrases = _PHRASES[lang]

    if config.interval and config.interval > 1:
        parts = [phrases["every_n_units"][config.frequency].format(n=config.interval)]
    else:
        parts = [phrases["every_unit"][config.frequency]]

    if config.frequency is Frequency.WEEKLY and config.by_weekday:
        if tuple(config.by_weekday) == WEEKDAYS:
            parts.append(phrases["weekdays"])
        elif len(config.by_weekday) == 7:
            parts.append(phrases["all_days"])
        else:
            parts.append(_weekday_list(config.by_weekday, phrases))
    elif config.frequency is Frequency.MONTHLY:
        if config.by_set_pos and config.by_weekday:
            parts.append(
                phrases["set_pos"].format(
                    pos=_position(config.by_set_pos, lang, phrases),
                    days=_weekday_list(
                        config.by_weekday,
                        phrases,
                        long_names=len(config.by_weekday) == 1,
                    ),
                )
            )
        elif config.by_month_day is not None:
            parts.append(phrases["month_day"].format(day=config.by_month_day))

    if config.end_type is EndType.UNTIL and config.end_date:
        parts.append(phrases["until"].format(date=config.end_date))
    elif config.end_type is EndType.COUNT and config.count:
        if config.count == 1:
            parts.append(phrases["count_one"])
        else:
            parts.append(phrases["count"].format(count=config.count))

    return phrases["separator"].join(parts)
