"""
screening/conditions.py
-----------------------
Three-valued evaluation of a programme's condition gate.

  eligible   — the gate is satisfied by confirmed answers
  ineligible — confirmed answers rule the person out
  unknown    — we can't tell until more conditions are answered

A condition the person has no answer for is UNKNOWN, never NO.
"""

from __future__ import annotations

from enum import Enum

from screening.models import ConditionGate, Person, TriState


class ConditionResult(str, Enum):
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    UNKNOWN = "unknown"


# Shown after "You can get this because ..."
CONDITION_LABELS: dict[str, str] = {
    "diabetes": "you have diabetes",
    "smoker": "you smoke",
    "exSmoker": "you used to smoke",
    "pregnant": "you are pregnant",
    "clinicalRiskGroup": "you have a health condition",
    "carer": "you are a carer",
    "immunosuppressed": "you have a weakened immune system",
    "careHomeResident": "you live in a care home",
}

# Follow-up questions for conditions we have no answer for
CONDITION_QUESTIONS: dict[str, str] = {
    "diabetes": "Do you have diabetes?",
    "smoker": "Do you currently smoke?",
    "exSmoker": "Have you smoked in the past?",
    "pregnant": "Are you currently pregnant?",
    "clinicalRiskGroup": "Do you have a long-term health condition?",
    "carer": "Are you an unpaid carer?",
    "immunosuppressed": "Do you have a weakened immune system?",
    "careHomeResident": "Do you live in a care home?",
}


def condition_label(key: str) -> str:
    return CONDITION_LABELS.get(key, key)


def condition_question(key: str) -> str:
    return CONDITION_QUESTIONS.get(key, key)


def evaluate_conditions(gate: ConditionGate | None, person: Person) -> ConditionResult:
    """
    Resolve a condition gate against the person's answers.

    AND: eligible if every condition is YES, ineligible if any is NO.
    OR:  eligible if any condition is YES, ineligible if every one is NO.
    Anything else is unknown.
    """
    if gate is None:
        return ConditionResult.ELIGIBLE

    answers = [person.condition(key) for key in gate.required]

    if gate.mode == "or":
        if any(a is TriState.YES for a in answers):
            return ConditionResult.ELIGIBLE
        if all(a is TriState.NO for a in answers):
            return ConditionResult.INELIGIBLE
        return ConditionResult.UNKNOWN

    if all(a is TriState.YES for a in answers):
        return ConditionResult.ELIGIBLE
    if any(a is TriState.NO for a in answers):
        return ConditionResult.INELIGIBLE
    return ConditionResult.UNKNOWN


def confirmed_conditions(gate: ConditionGate | None, person: Person) -> list[str]:
    """Required condition keys the person has confirmed YES."""
    if gate is None:
        return []
    return [key for key in gate.required if person.condition(key) is TriState.YES]


def unknown_conditions(gate: ConditionGate | None, person: Person) -> list[str]:
    """Required condition keys we have no answer for."""
    if gate is None:
        return []
    return [key for key in gate.required if person.condition(key) is TriState.UNKNOWN]
