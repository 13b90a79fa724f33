"""
screening/messages.py
---------------------
Status text for each programme row.

Every display status has default wording.  A programme can override the
wording for a status through its `messages` table, either with fixed text
or with a template that receives a pre-formatted date or duration.
"""

from __future__ import annotations

from datetime import date

from screening.dates import window_date
from screening.history import HistoryInfo, HistoryStatus
from screening.models import DisplayStatus, Programme


# ---------------------------------------------------------------------------
# Sub-formatters
# ---------------------------------------------------------------------------

def format_duration(days: int) -> str:
    """'12 days', '1 month', '5 months', '1 year', '3 years'."""
    if days < 30:
        return f"{days} days"
    if days < 365:
        months = days // 30
        return "1 month" if months == 1 else f"{months} months"
    years = days // 365
    return "1 year" if years == 1 else f"{years} years"


def format_month_year(value: date) -> str:
    return f"{value:%B} {value.year}"


def format_day_month_year(value: date) -> str:
    return f"{value.day} {value:%B} {value.year}"


def format_long_date(value: date) -> str:
    """'Tuesday 17 February 2026'."""
    return f"{value:%A} {value.day} {value:%B} {value.year}"


def format_relative_date(value: date, today: date) -> str:
    """
    Describe a date relative to today: 'yesterday', '3 days ago',
    'last week', 'in 2 months' and so on.  Anything a year or more away
    falls back to 'Month YYYY'.
    """
    diff = (value - today).days

    if diff < 0:
        days = -diff
        if days == 1:
            return "yesterday"
        if days < 7:
            return f"{days} days ago"
        if days < 30:
            weeks = days // 7
            return "last week" if weeks == 1 else f"{weeks} weeks ago"
        if days < 365:
            months = days // 30
            return "last month" if months == 1 else f"{months} months ago"
        return format_month_year(value)

    if diff == 0:
        return "today"
    if diff == 1:
        return "tomorrow"
    if diff < 7:
        return f"in {diff} days"
    if diff < 30:
        weeks = diff // 7
        return "in 1 week" if weeks == 1 else f"in {weeks} weeks"
    if diff < 365:
        months = diff // 30
        return "in 1 month" if months == 1 else f"in {months} months"
    return format_month_year(value)


def format_available_until(programme: Programme, today: date) -> str | None:
    """'Available until 31 March 2026' for programmes with a seasonal window."""
    window = programme.seasonal_window
    if window is None:
        return None
    end = window_date(window.start, window.end, "end", today)
    return f"Available until {format_day_month_year(end)}"


# ---------------------------------------------------------------------------
# Status text
# ---------------------------------------------------------------------------

def _override(programme: Programme, key: str, value: str = "") -> str | None:
    message = programme.messages.get(key)
    if message is None:
        return None
    return message.render(value)


def _overdue_text(programme: Programme, overdue_days: int) -> str:
    duration = format_duration(overdue_days)
    return _override(programme, "overdue", duration) or f"Due {duration} ago"


def _not_had_text(programme: Programme) -> str:
    if programme.type == "screening":
        return "You have not had this check before"
    return programme.description


def build_status_text(
    programme: Programme,
    status: DisplayStatus,
    info: HistoryInfo,
    today: date,
) -> str:
    """User-facing text for one programme row."""
    if status is DisplayStatus.OVERDUE:
        if info.status is HistoryStatus.OVERDUE and info.overdue_days is not None:
            return _overdue_text(programme, info.overdue_days)
        return _not_had_text(programme)

    if status is DisplayStatus.ACTION_NEEDED:
        available = format_available_until(programme, today)
        if available:
            return available
        if info.status is HistoryStatus.OVERDUE and info.overdue_days is not None:
            return _overdue_text(programme, info.overdue_days)
        return _not_had_text(programme)

    if status is DisplayStatus.IN_PROGRESS:
        given = info.doses or 0
        required = info.required_doses or 0
        counts = f"{given} of {required}"
        return _override(programme, "inProgress", counts) or f"{counts} doses given"

    if status is DisplayStatus.BOOKED:
        return format_long_date(info.last_date) if info.last_date else "Booked"

    if status is DisplayStatus.UPCOMING:
        if info.next_due_date is None:
            return "Not due yet"
        when = format_relative_date(info.next_due_date, today)
        return _override(programme, "upcoming", when) or f"Next due {when}"

    if status is DisplayStatus.UNKNOWN:
        return _override(programme, "checkEligibility") or "This may be available to you."

    if status is DisplayStatus.UP_TO_DATE:
        when = format_relative_date(info.last_date, today) if info.last_date else ""
        override = _override(programme, "complete", when)
        if override:
            return override
        if info.last_date:
            return f"You had this {when}"
        return "Up to date"

    if status is DisplayStatus.EXPIRED:
        return f"Was due {format_duration(info.overdue_days or 0)} ago, no longer showing"

    if status is DisplayStatus.OPTED_OUT:
        return "You opted out of this"

    return ""
