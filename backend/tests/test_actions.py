"""
tests/test_actions.py
---------------------
Unit tests for the row actions and follow-up questions (screening/actions.py).

Run with:
    pytest tests/test_actions.py -v
"""

from datetime import date

import pytest

from db.person_store import InMemoryPersonStore
from screening import actions
from screening.actions import HistoryActionError
from screening.catalogue import load_catalogue
from screening.config import Settings
from screening.engine import evaluate_programme
from screening.models import DisplayStatus, TriState

TODAY = date(2025, 10, 1)


@pytest.fixture(scope="module")
def catalogue():
    return load_catalogue(Settings().catalogue_path)


@pytest.fixture
def store():
    return InMemoryPersonStore.from_fixture(Settings().personas_path)


def _status(store, catalogue, person_id, programme_id, proxy_id=None):
    person = store.get(person_id, proxy_id)
    row = evaluate_programme(person, catalogue.get(programme_id), TODAY)
    return row.display_status if row else None


class TestBook:

    def test_book_shows_booked(self, store, catalogue):
        person = actions.book(store, "Margaret", catalogue.get("bowel-cancer"), date(2025, 10, 20), TODAY)
        assert person.history_for("bowel-cancer").last_date == date(2025, 10, 20)
        assert _status(store, catalogue, "Margaret", "bowel-cancer") is DisplayStatus.BOOKED

    def test_book_today_is_allowed(self, store, catalogue):
        actions.book(store, "Raam", catalogue.get("flu-vaccine"), TODAY, TODAY)
        assert store.get("Raam").history_for("flu-vaccine").last_date == TODAY

    def test_book_in_past_rejected(self, store, catalogue):
        with pytest.raises(HistoryActionError):
            actions.book(store, "Margaret", catalogue.get("bowel-cancer"), date(2025, 9, 1), TODAY)

    def test_book_for_proxy(self, store, catalogue):
        actions.book(store, "Amelia", catalogue.get("mmr-vaccine-2"), date(2025, 11, 3), TODAY, proxy_id="Ryan")
        assert store.get("Amelia", "Ryan").history_for("mmr-vaccine-2").last_date == date(2025, 11, 3)


class TestRecordElsewhere:

    def test_past_date_recorded(self, store, catalogue):
        actions.record_elsewhere(store, "Margaret", catalogue.get("bowel-cancer"), date(2025, 9, 1), TODAY)
        assert _status(store, catalogue, "Margaret", "bowel-cancer") is DisplayStatus.UPCOMING

    def test_future_date_rejected(self, store, catalogue):
        with pytest.raises(HistoryActionError):
            actions.record_elsewhere(store, "Margaret", catalogue.get("bowel-cancer"), date(2025, 12, 1), TODAY)


class TestOptOut:

    def test_opt_out_then_back_in(self, store, catalogue):
        bowel = catalogue.get("bowel-cancer")
        actions.opt_out(store, "Margaret", bowel)
        assert _status(store, catalogue, "Margaret", "bowel-cancer") is DisplayStatus.OPTED_OUT

        person = actions.opt_back_in(store, "Margaret", bowel)
        assert person.history_for("bowel-cancer") is None

    def test_opt_back_in_requires_opt_out(self, store, catalogue):
        with pytest.raises(HistoryActionError):
            actions.opt_back_in(store, "Raam", catalogue.get("flu-vaccine"))

    def test_opt_back_in_when_row_not_shown(self, store, catalogue):
        assert _status(store, catalogue, "Margaret", "cervical-screening") is None  # over 64
        actions.opt_back_in(store, "Margaret", catalogue.get("cervical-screening"))
        assert store.get("Margaret").history_for("cervical-screening") is None


class TestCancel:

    def test_cancel_removes_entry(self, store, catalogue):
        actions.cancel(store, "Raam", catalogue.get("flu-vaccine"))
        assert store.get("Raam").history_for("flu-vaccine") is None

    def test_cancel_without_entry(self, store, catalogue):
        with pytest.raises(HistoryActionError):
            actions.cancel(store, "Raam", catalogue.get("bowel-cancer"))


class TestFollowUpQuestions:

    def test_questions_for_unknown_row(self, store, catalogue):
        person = store.get("Amelia")
        row = evaluate_programme(person, catalogue.get("lung-screening"), TODAY)
        assert row is None  # under 55 and not a smoker

        row = evaluate_programme(person, catalogue.get("flu-vaccine"), TODAY)
        assert row.display_status is DisplayStatus.UNKNOWN
        questions = actions.follow_up_questions(row)
        assert questions == [{"key": "carer", "question": "Are you an unpaid carer?"}]

    def test_answer_resolves_unknown(self, store, catalogue):
        actions.answer_condition(store, "Amelia", "carer", TriState.YES)
        assert _status(store, catalogue, "Amelia", "flu-vaccine") is DisplayStatus.ACTION_NEEDED

    def test_answer_no_removes_row(self, store, catalogue):
        actions.answer_condition(store, "Amelia", "carer", TriState.NO)
        assert _status(store, catalogue, "Amelia", "flu-vaccine") is None
