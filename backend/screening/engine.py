"""
screening/engine.py
-------------------
Eligibility and status engine.

Given a person, the programme catalogue and today's date, works out which
programmes apply to the person and what single display status each one
has.  The engine is a pure function of its inputs: it never touches the
person store and never mutates the person or the catalogue.

Two stages:

  1. Filter — drop programmes the person can't have (season, sex,
     prerequisites, exclusions, opt-out gating, age band and condition
     gate).  The upper age bound is absolute; conditions never override it.

  2. Status — combine the condition result, the age check and the history
     status through an ordered list of rules.  The FIRST rule that matches
     decides the display status:

       opted-out      history says opted out
       unknown        conditions unanswered and they matter
       expired        overdue beyond the schedule's expiryDays
       action-needed  never had / overdue (→ overdue past the grace period)
       in-progress    multi-dose course started
       booked         appointment in the future
       upcoming       not due again yet
       up-to-date     everything else
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Iterable

from screening.conditions import (
    ConditionResult,
    condition_label,
    confirmed_conditions,
    evaluate_conditions,
    unknown_conditions,
)
from screening.dates import add_years, days_between, in_seasonal_window
from screening.history import HistoryInfo, HistoryStatus, resolve_history
from screening.messages import build_status_text
from screening.models import DisplayStatus, Person, Programme, TriState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgrammeResult:
    """One row of output: everything a caller needs to group, sort and render."""
    id: str
    name: str
    type: str
    description: str
    display_status: DisplayStatus
    status_text: str
    history_status: HistoryStatus
    last_date: date | None = None
    next_due_date: date | None = None
    overdue_days: int | None = None
    eligibility_reasons: tuple[str, ...] = ()
    unknown_conditions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "displayStatus": self.display_status.value,
            "statusText": self.status_text,
            "historyStatus": self.history_status.value,
            "lastDate": self.last_date.isoformat() if self.last_date else None,
            "nextDueDate": self.next_due_date.isoformat() if self.next_due_date else None,
            "overdueDays": self.overdue_days,
            "eligibilityReasons": list(self.eligibility_reasons),
            "unknownConditions": list(self.unknown_conditions),
        }


# ---------------------------------------------------------------------------
# Filter stage
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Assessment:
    """Outcome of the filter stage for one programme."""
    included: bool
    reason: str | None = None          # why it was filtered out
    age: int = 0
    min_age_ok: bool = False
    condition_result: ConditionResult = ConditionResult.ELIGIBLE


def prerequisites_met(person: Person, programme: Programme, today: date) -> bool:
    """Every prerequisite has a lastDate that is not in the future."""
    for prog_id in programme.eligibility.requires:
        entry = person.history_for(prog_id)
        if entry is None or entry.last_date is None or entry.last_date > today:
            return False
    return True


def assess(person: Person, programme: Programme, today: date) -> Assessment:
    """Run the filter checks in order and report the first one that fails."""
    elig = programme.eligibility
    age = person.age_on(today)
    window = programme.seasonal_window

    if window is not None and not in_seasonal_window(window.start, window.end, today):
        return Assessment(False, f"outside season {window.start} to {window.end}", age)

    if elig.sex != "all" and elig.sex != person.sex:
        return Assessment(False, f"sex is {person.sex} (needs {elig.sex})", age)

    if not prerequisites_met(person, programme, today):
        return Assessment(False, "needs " + ", ".join(elig.requires) + " first", age)

    excluded_by = [c for c in elig.exclude_conditions if person.condition(c) is TriState.YES]
    if excluded_by:
        return Assessment(False, "excluded: " + ", ".join(condition_label(c) for c in excluded_by), age)

    if elig.requires_opt_out:
        entry = person.history_for(elig.requires_opt_out)
        if entry is None or not entry.opted_out:
            return Assessment(False, f"only offered after opting out of {elig.requires_opt_out}", age)

    if elig.age.max is not None and age > elig.age.max:
        return Assessment(False, f"age {age} above max {elig.age.max}", age)

    min_age_ok = age >= elig.age.min
    condition_result = evaluate_conditions(elig.conditions, person)
    kept = Assessment(True, None, age, min_age_ok, condition_result)

    if elig.conditions is None:
        if not min_age_ok:
            return replace(kept, included=False, reason=f"age {age} below min {elig.age.min}")
        return kept

    if elig.conditions.mode == "and":
        if condition_result is ConditionResult.INELIGIBLE:
            return replace(kept, included=False, reason="conditions not met")
        if not min_age_ok:
            return replace(kept, included=False, reason=f"age {age} below min {elig.age.min}")
        return kept

    # "or": age alone or conditions alone can qualify
    if condition_result is ConditionResult.INELIGIBLE and not min_age_ok:
        return replace(
            kept,
            included=False,
            reason=f"age {age} below min {elig.age.min} and conditions not met",
        )
    return kept


def failed_checks(person: Person, programme: Programme, today: date) -> list[str]:
    """
    Every filter check the person fails for this programme, in filter order.
    Unlike assess() this does not stop at the first failure; it backs the
    "not shown" debug list.
    """
    elig = programme.eligibility
    age = person.age_on(today)
    window = programme.seasonal_window
    failed: list[str] = []

    if window is not None and not in_seasonal_window(window.start, window.end, today):
        failed.append(f"outside season {window.start} to {window.end}")
    if elig.sex != "all" and elig.sex != person.sex:
        failed.append(f"sex is {person.sex} (needs {elig.sex})")
    if not prerequisites_met(person, programme, today):
        failed.append("needs " + ", ".join(elig.requires) + " first")

    excluded_by = [c for c in elig.exclude_conditions if person.condition(c) is TriState.YES]
    if excluded_by:
        failed.append("excluded: " + ", ".join(condition_label(c) for c in excluded_by))

    if elig.requires_opt_out:
        entry = person.history_for(elig.requires_opt_out)
        if entry is None or not entry.opted_out:
            failed.append(f"only offered after opting out of {elig.requires_opt_out}")

    if age < elig.age.min:
        failed.append(f"age {age} below min {elig.age.min}")
    elif elig.age.max is not None and age > elig.age.max:
        failed.append(f"age {age} above max {elig.age.max}")

    if elig.conditions is not None and evaluate_conditions(elig.conditions, person) is ConditionResult.INELIGIBLE:
        failed.append("conditions not met")
    return failed


# ---------------------------------------------------------------------------
# Status stage
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StatusContext:
    person: Person
    programme: Programme
    info: HistoryInfo
    assessment: Assessment
    today: date


StatusRule = Callable[[StatusContext], "tuple[DisplayStatus, HistoryInfo] | None"]


def days_since_eligible(person: Person, programme: Programme, today: date) -> int | None:
    """Days since the person reached the programme's minimum age (None if unknown or not yet)."""
    if person.date_of_birth is None:
        return None
    eligible_from = add_years(person.date_of_birth, programme.eligibility.age.min)
    days = days_between(eligible_from, today)
    return days if days >= 0 else None


def _rule_opted_out(ctx: StatusContext):
    if ctx.info.status is HistoryStatus.OPTED_OUT:
        return DisplayStatus.OPTED_OUT, ctx.info
    return None


def _rule_unknown(ctx: StatusContext):
    if ctx.assessment.condition_result is not ConditionResult.UNKNOWN:
        return None
    elig = ctx.programme.eligibility
    gate_is_and = elig.conditions is not None and elig.conditions.mode == "and"
    if gate_is_and or not ctx.assessment.min_age_ok or elig.require_conditions:
        return DisplayStatus.UNKNOWN, ctx.info
    return None


def _rule_expired(ctx: StatusContext):
    expiry = ctx.programme.schedule.expiry_days
    info = ctx.info
    if info.status is HistoryStatus.OVERDUE and expiry and (info.overdue_days or 0) > expiry:
        return DisplayStatus.EXPIRED, info
    return None


def _rule_due(ctx: StatusContext):
    info = ctx.info
    if info.status not in (HistoryStatus.NEVER_HAD, HistoryStatus.OVERDUE):
        return None

    grace = ctx.programme.overdue_days
    if not grace:
        return DisplayStatus.ACTION_NEEDED, info
    if info.status is HistoryStatus.OVERDUE:
        return DisplayStatus.OVERDUE, info

    waited = days_since_eligible(ctx.person, ctx.programme, ctx.today)
    if waited is not None and waited > grace:
        return DisplayStatus.OVERDUE, replace(info, overdue_days=waited)
    return DisplayStatus.ACTION_NEEDED, info


def _rule_partial(ctx: StatusContext):
    if ctx.info.status is HistoryStatus.PARTIAL:
        return DisplayStatus.IN_PROGRESS, ctx.info
    return None


def _rule_booked(ctx: StatusContext):
    if ctx.info.status is HistoryStatus.BOOKED:
        return DisplayStatus.BOOKED, ctx.info
    return None


def _rule_upcoming(ctx: StatusContext):
    if ctx.info.status is HistoryStatus.UPCOMING:
        return DisplayStatus.UPCOMING, ctx.info
    return None


def _rule_up_to_date(ctx: StatusContext):
    return DisplayStatus.UP_TO_DATE, ctx.info


# Evaluated top to bottom; the first rule returning a status wins.
STATUS_RULES: tuple[StatusRule, ...] = (
    _rule_opted_out,
    _rule_unknown,
    _rule_expired,
    _rule_due,
    _rule_partial,
    _rule_booked,
    _rule_upcoming,
    _rule_up_to_date,
)


def resolve_display_status(ctx: StatusContext) -> tuple[DisplayStatus, HistoryInfo]:
    for rule in STATUS_RULES:
        outcome = rule(ctx)
        if outcome is not None:
            return outcome
    return DisplayStatus.UP_TO_DATE, ctx.info


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def evaluate_programme(
    person: Person,
    programme: Programme,
    today: date,
    assessment: Assessment | None = None,
) -> ProgrammeResult | None:
    """Result row for one programme, or None if the person can't have it."""
    assessment = assessment or assess(person, programme, today)
    if not assessment.included:
        return None

    info = resolve_history(programme, person.history_for(programme.id), today)
    ctx = StatusContext(person, programme, info, assessment, today)
    status, info = resolve_display_status(ctx)

    gate = programme.eligibility.conditions
    return ProgrammeResult(
        id=programme.id,
        name=programme.name,
        type=programme.type,
        description=programme.description,
        display_status=status,
        status_text=build_status_text(programme, status, info, today),
        history_status=info.status,
        last_date=info.last_date,
        next_due_date=info.next_due_date,
        overdue_days=info.overdue_days,
        eligibility_reasons=tuple(condition_label(c) for c in confirmed_conditions(gate, person)),
        unknown_conditions=tuple(unknown_conditions(gate, person)),
    )


def get_programmes_for_person(
    person: Person,
    programmes: Iterable[Programme],
    today: date,
) -> list[ProgrammeResult]:
    """
    Evaluate every programme in catalogue order and return the rows that
    apply to the person.

    A programme that fails to evaluate is logged and left out; it never
    stops the rest of the list from being produced.
    """
    results: list[ProgrammeResult] = []
    for programme in programmes:
        try:
            row = evaluate_programme(person, programme, today)
        except Exception:
            logger.exception(
                "Failed to evaluate programme %s for person %s — skipped",
                getattr(programme, "id", "?"), person.id,
            )
            continue
        if row is not None:
            results.append(row)
    return results
