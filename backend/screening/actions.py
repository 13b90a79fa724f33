"""
screening/actions.py
--------------------
What a person can do from a programme row: book it, say they had it
elsewhere, opt out or back in, cancel an entry, and answer the follow-up
questions that turn an "unknown" row into a definite one.

Each action writes through the person store and returns the updated
Person snapshot.  The engine is re-run by the caller afterwards.
"""

from __future__ import annotations

import logging
from datetime import date

from db.person_store import PersonStore
from screening.conditions import condition_question
from screening.engine import ProgrammeResult
from screening.models import HistoryEntry, Person, Programme, TriState

logger = logging.getLogger(__name__)


class HistoryActionError(Exception):
    """Raised when an action doesn't make sense for the current history."""


def _dated_entry(programme: Programme, on: date) -> HistoryEntry:
    doses = programme.schedule.doses if programme.schedule.type == "multi-dose" else None
    return HistoryEntry(last_date=on, doses=doses)


def book(
    store: PersonStore,
    person_id: str,
    programme: Programme,
    on: date,
    today: date,
    proxy_id: str | None = None,
) -> Person:
    """Book an appointment.  The date must be today or later."""
    if on < today:
        raise HistoryActionError(f"cannot book {programme.id} in the past ({on.isoformat()})")
    logger.info("Booking %s for person=%s proxy=%s on %s", programme.id, person_id, proxy_id, on)
    return store.record_history(person_id, programme.id, _dated_entry(programme, on), proxy_id)


def record_elsewhere(
    store: PersonStore,
    person_id: str,
    programme: Programme,
    on: date,
    today: date,
    proxy_id: str | None = None,
) -> Person:
    """Record that the person already had this somewhere else."""
    if on > today:
        raise HistoryActionError(
            f"{programme.id} had elsewhere on {on.isoformat()} is in the future"
        )
    logger.info("Recording %s elsewhere for person=%s proxy=%s on %s", programme.id, person_id, proxy_id, on)
    return store.record_history(person_id, programme.id, _dated_entry(programme, on), proxy_id)


def opt_out(
    store: PersonStore,
    person_id: str,
    programme: Programme,
    proxy_id: str | None = None,
) -> Person:
    return store.record_history(person_id, programme.id, HistoryEntry(opted_out=True), proxy_id)


def opt_back_in(
    store: PersonStore,
    person_id: str,
    programme: Programme,
    proxy_id: str | None = None,
) -> Person:
    """Undo an opt-out.  The row goes back to never-had."""
    entry = store.get(person_id, proxy_id).history_for(programme.id)
    if entry is None or not entry.opted_out:
        raise HistoryActionError(f"not opted out of {programme.id}")
    return store.remove_history(person_id, programme.id, proxy_id)


def cancel(
    store: PersonStore,
    person_id: str,
    programme: Programme,
    proxy_id: str | None = None,
) -> Person:
    if store.get(person_id, proxy_id).history_for(programme.id) is None:
        raise HistoryActionError(f"no history for {programme.id} to cancel")
    return store.remove_history(person_id, programme.id, proxy_id)


# ---------------------------------------------------------------------------
# Follow-up questions
# ---------------------------------------------------------------------------

def follow_up_questions(result: ProgrammeResult) -> list[dict[str, str]]:
    """Questions to ask for each unanswered condition on an "unknown" row."""
    return [
        {"key": key, "question": condition_question(key)}
        for key in result.unknown_conditions
    ]


def answer_condition(
    store: PersonStore,
    person_id: str,
    key: str,
    value: TriState,
    proxy_id: str | None = None,
) -> Person:
    return store.set_condition(person_id, key, value, proxy_id)
