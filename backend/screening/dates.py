"""
screening/dates.py
------------------
Pure date helpers used by the eligibility engine.

Every function takes "today" (or a reference date) explicitly so results
never depend on the wall clock.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_date(value: date | str | None) -> date | None:
    """
    Coerce an ISO date string (YYYY-MM-DD, optionally with a time part)
    to a date.  Returns None for empty values; raises ValueError for junk.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


def calculate_age(date_of_birth: date, today: date) -> int:
    """Whole years elapsed, minus one if this year's birthday hasn't happened yet."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def add_years(value: date, years: int) -> date:
    """
    Same calendar day `years` later.  29 February rolls forward to
    1 March when the target year is not a leap year.
    """
    year = value.year + years
    if value.month == 2 and value.day == 29 and not calendar.isleap(year):
        return date(year, 3, 1)
    return value.replace(year=year)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end is earlier)."""
    return (end - start).days


def _mmdd(value: str) -> int:
    month, day = (int(part) for part in value.split("-"))
    return month * 100 + day


def in_seasonal_window(start: str, end: str, today: date) -> bool:
    """
    True when today falls inside the inclusive MM-DD window.

    A window whose start is later in the year than its end (e.g. 09-01 to
    03-31) crosses New Year.
    """
    today_val = today.month * 100 + today.day
    start_val = _mmdd(start)
    end_val = _mmdd(end)

    if start_val <= end_val:
        return start_val <= today_val <= end_val
    return today_val >= start_val or today_val <= end_val


def window_date(start: str, end: str, which: str, today: date) -> date:
    """
    Resolve one edge of a seasonal window to a concrete date in the season
    that contains `today`.  `which` is "start" or "end".
    """
    month, day = (int(part) for part in (start if which == "start" else end).split("-"))
    start_month = int(start.split("-")[0])
    end_month = int(end.split("-")[0])

    year = today.year
    if start_month > end_month:
        if which == "start" and today.month <= end_month:
            year -= 1
        elif which == "end" and today.month >= start_month:
            year += 1

    if month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return date(year, month, day)
