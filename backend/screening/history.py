"""
screening/history.py
--------------------
Works out where a person is in a programme's schedule from their history
entry for it.

Checks run in order and the first match wins:
  no entry              → never-had
  optedOut              → opted-out (nothing else is looked at)
  no lastDate           → never-had
  lastDate after today  → booked, whatever the schedule type
  one-off               → complete
  multi-dose            → partial until enough doses, then complete
  recurring             → upcoming until lastDate + intervalYears, then overdue
  anything else         → complete
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from screening.dates import add_years, days_between
from screening.models import HistoryEntry, Programme


class HistoryStatus(str, Enum):
    NEVER_HAD = "never-had"
    OPTED_OUT = "opted-out"
    BOOKED = "booked"
    COMPLETE = "complete"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class HistoryInfo:
    status: HistoryStatus
    last_date: date | None = None
    next_due_date: date | None = None
    overdue_days: int | None = None
    doses: int | None = None
    required_doses: int | None = None


def resolve_history(
    programme: Programme,
    entry: HistoryEntry | None,
    today: date,
) -> HistoryInfo:
    if entry is None:
        return HistoryInfo(HistoryStatus.NEVER_HAD)

    if entry.opted_out:
        return HistoryInfo(HistoryStatus.OPTED_OUT)

    if entry.last_date is None:
        return HistoryInfo(HistoryStatus.NEVER_HAD)

    last_date = entry.last_date
    if last_date > today:
        return HistoryInfo(HistoryStatus.BOOKED, last_date=last_date)

    schedule = programme.schedule

    if schedule.type == "one-off":
        return HistoryInfo(HistoryStatus.COMPLETE, last_date=last_date)

    if schedule.type == "multi-dose" and schedule.doses:
        given = entry.doses if entry.doses is not None else 1
        if given < schedule.doses:
            return HistoryInfo(
                HistoryStatus.PARTIAL,
                last_date=last_date,
                doses=given,
                required_doses=schedule.doses,
            )
        return HistoryInfo(
            HistoryStatus.COMPLETE,
            last_date=last_date,
            doses=given,
            required_doses=schedule.doses,
        )

    if schedule.type == "recurring" and schedule.interval_years:
        next_due = add_years(last_date, schedule.interval_years)
        if today >= next_due:
            return HistoryInfo(
                HistoryStatus.OVERDUE,
                last_date=last_date,
                next_due_date=next_due,
                overdue_days=days_between(next_due, today),
            )
        return HistoryInfo(HistoryStatus.UPCOMING, last_date=last_date, next_due_date=next_due)

    return HistoryInfo(HistoryStatus.COMPLETE, last_date=last_date)
