"""
screening/report.py
-------------------
Caller-side helpers for presenting engine output: grouping rows by
display status, explaining why a programme was shown or left out, and a
plain-text rendering for the command line and the /text endpoint.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from screening.catalogue import Catalogue
from screening.engine import ProgrammeResult, failed_checks
from screening.models import DisplayStatus, Person, Programme

logger = logging.getLogger(__name__)

# Display order and headings for the grouped report.
GROUP_HEADINGS: dict[DisplayStatus, str] = {
    DisplayStatus.ACTION_NEEDED: "Action needed",
    DisplayStatus.OVERDUE: "Overdue",
    DisplayStatus.IN_PROGRESS: "In progress",
    DisplayStatus.BOOKED: "Booked",
    DisplayStatus.UPCOMING: "Upcoming",
    DisplayStatus.UNKNOWN: "Check if you're eligible",
    DisplayStatus.UP_TO_DATE: "Up to date",
    DisplayStatus.EXPIRED: "No longer showing",
    DisplayStatus.OPTED_OUT: "Opted out",
}


def group_results(rows: Iterable[ProgrammeResult]) -> dict[DisplayStatus, list[ProgrammeResult]]:
    """
    Bucket rows by display status, every status present (possibly empty).
    Action-needed and overdue rows put the longest-waiting first; booked
    rows are in appointment order.  Other groups keep catalogue order.
    """
    grouped: dict[DisplayStatus, list[ProgrammeResult]] = {status: [] for status in GROUP_HEADINGS}
    for row in rows:
        grouped[row.display_status].append(row)

    for status in (DisplayStatus.ACTION_NEEDED, DisplayStatus.OVERDUE):
        grouped[status].sort(key=lambda r: r.overdue_days or 0, reverse=True)
    grouped[DisplayStatus.BOOKED].sort(key=lambda r: r.last_date or date.max)
    return grouped


def inclusion_reasons(person: Person, programme: Programme, row: ProgrammeResult, today: date) -> str:
    """Debug text: why this programme is on the person's list."""
    age = person.age_on(today)
    band = programme.eligibility.age
    reasons = []
    if age >= band.min and (band.max is None or age <= band.max):
        upper = "no limit" if band.max is None else band.max
        reasons.append(f"age {age} is within {band.min}-{upper}")
    if row.eligibility_reasons:
        reasons.append(", ".join(row.eligibility_reasons))
    if row.unknown_conditions:
        reasons.append("unknown: " + ", ".join(row.unknown_conditions))
    return " + ".join(reasons) or "no specific reason"


def excluded_programmes(
    person: Person,
    catalogue: Catalogue,
    rows: Iterable[ProgrammeResult],
    today: date,
) -> list[dict[str, str]]:
    """
    Programmes left off the person's list, each with every check it failed.
    A programme whose checks raise is still listed, as "could not be evaluated".
    """
    shown = {row.id for row in rows}
    excluded = []
    for programme in catalogue:
        if programme.id in shown:
            continue
        try:
            reasons = failed_checks(person, programme, today)
        except Exception:
            logger.exception(
                "Failed to check programme %s for person %s",
                programme.id, person.id,
            )
            reasons = []
        reason = ", ".join(reasons) or "could not be evaluated"
        excluded.append({"id": programme.id, "name": programme.name, "reason": reason})
    return excluded


def render_text(person: Person, grouped: dict[DisplayStatus, list[ProgrammeResult]], today: date) -> str:
    """Plain-text report, one section per non-empty group."""
    lines = [f"{person.surname or person.id} ({person.age_on(today)}, {person.sex}) on {today.isoformat()}"]
    for status, heading in GROUP_HEADINGS.items():
        rows = grouped.get(status) or []
        if not rows:
            continue
        lines.append("")
        lines.append(f"{heading} ({len(rows)})")
        for row in rows:
            lines.append(f"  - {row.name}: {row.status_text}")
    return "\n".join(lines) + "\n"
