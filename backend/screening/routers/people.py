"""
screening/routers/people.py
---------------------------
Per-person endpoints: the grouped programme list and the actions a person
can take on a row.

  GET    /people
  GET    /people/{id}/programmes?proxy=
  GET    /people/{id}/programmes/text?proxy=
  POST   /people/{id}/history/{programme_id}/book        {"date": "YYYY-MM-DD"}
  POST   /people/{id}/history/{programme_id}/elsewhere   {"date": "YYYY-MM-DD"}
  POST   /people/{id}/history/{programme_id}/opt-out
  POST   /people/{id}/history/{programme_id}/opt-in
  DELETE /people/{id}/history/{programme_id}
  PUT    /people/{id}/conditions/{key}                    {"value": true|false|null}

Every write returns the refreshed programme list for the same person (or
proxy) so the caller can re-render without a second request.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from db.person_store import PersonStore
from screening import actions
from screening.catalogue import Catalogue
from screening.dependencies import get_catalogue, get_request_today, get_store
from screening.engine import get_programmes_for_person
from screening.models import Person, TriState
from screening.report import (
    excluded_programmes,
    group_results,
    inclusion_reasons,
    render_text,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/people", tags=["People"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class DateRequest(BaseModel):
    date: dt.date


class ConditionAnswer(BaseModel):
    value: Optional[bool] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _summary(person: Person, today: dt.date) -> dict[str, Any]:
    return {
        "id": person.id,
        "lastName": person.surname,
        "sex": person.sex,
        "age": person.age_on(today),
        "proxies": [
            {"id": proxy.id, "lastName": proxy.surname, "age": proxy.age_on(today)}
            for proxy in person.proxies
        ],
    }


def _report(person: Person, catalogue: Catalogue, today: dt.date) -> dict[str, Any]:
    rows = get_programmes_for_person(person, catalogue, today)
    grouped = group_results(rows)

    groups: dict[str, list[dict[str, Any]]] = {}
    for status, group in grouped.items():
        groups[status.value] = []
        for row in group:
            item = row.to_dict()
            item["reasonText"] = inclusion_reasons(person, catalogue.get(row.id), row, today)
            item["followUpQuestions"] = actions.follow_up_questions(row)
            groups[status.value].append(item)

    return {
        "person": _summary(person, today),
        "today": today.isoformat(),
        "groups": groups,
        "excluded": excluded_programmes(person, catalogue, rows, today),
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get("")
async def list_people(
    store: PersonStore = Depends(get_store),
    today: dt.date = Depends(get_request_today),
):
    return [_summary(person, today) for person in store.list_people()]


@router.get("/{person_id}/programmes")
async def person_programmes(
    person_id: str,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    return _report(store.get(person_id, proxy), catalogue, today)


@router.get("/{person_id}/programmes/text", response_class=PlainTextResponse)
async def person_programmes_text(
    person_id: str,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    person = store.get(person_id, proxy)
    rows = get_programmes_for_person(person, catalogue, today)
    return render_text(person, group_results(rows), today)


# ---------------------------------------------------------------------------
# History actions
# ---------------------------------------------------------------------------

@router.post("/{person_id}/history/{programme_id}/book")
async def book_programme(
    person_id: str,
    programme_id: str,
    body: DateRequest,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    programme = catalogue.get(programme_id)
    person = actions.book(store, person_id, programme, body.date, today, proxy)
    return _report(person, catalogue, today)


@router.post("/{person_id}/history/{programme_id}/elsewhere")
async def record_elsewhere(
    person_id: str,
    programme_id: str,
    body: DateRequest,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    programme = catalogue.get(programme_id)
    person = actions.record_elsewhere(store, person_id, programme, body.date, today, proxy)
    return _report(person, catalogue, today)


@router.post("/{person_id}/history/{programme_id}/opt-out")
async def opt_out(
    person_id: str,
    programme_id: str,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    person = actions.opt_out(store, person_id, catalogue.get(programme_id), proxy)
    return _report(person, catalogue, today)


@router.post("/{person_id}/history/{programme_id}/opt-in")
async def opt_back_in(
    person_id: str,
    programme_id: str,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    person = actions.opt_back_in(store, person_id, catalogue.get(programme_id), proxy)
    return _report(person, catalogue, today)


@router.delete("/{person_id}/history/{programme_id}")
async def cancel_entry(
    person_id: str,
    programme_id: str,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    person = actions.cancel(store, person_id, catalogue.get(programme_id), proxy)
    return _report(person, catalogue, today)


# ---------------------------------------------------------------------------
# Follow-up answers
# ---------------------------------------------------------------------------

@router.put("/{person_id}/conditions/{key}")
async def answer_condition(
    person_id: str,
    key: str,
    body: ConditionAnswer,
    proxy: Optional[str] = None,
    store: PersonStore = Depends(get_store),
    catalogue: Catalogue = Depends(get_catalogue),
    today: dt.date = Depends(get_request_today),
):
    value = TriState.from_value(body.value)
    person = actions.answer_condition(store, person_id, key, value, proxy)
    return _report(person, catalogue, today)
