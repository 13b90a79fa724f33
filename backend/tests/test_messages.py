"""
tests/test_messages.py
----------------------
Unit tests for status text and date phrasing (screening/messages.py).

Run with:
    pytest tests/test_messages.py -v
"""

from datetime import date

import pytest

from screening.history import HistoryInfo, HistoryStatus
from screening.messages import (
    build_status_text,
    format_duration,
    format_long_date,
    format_relative_date,
)
from screening.models import DisplayStatus, Programme

TODAY = date(2026, 2, 17)


def _programme(**overrides) -> Programme:
    record = {
        "id": "test-programme",
        "name": "Test programme",
        "type": "screening",
        "description": "A test programme.",
        "eligibility": {"age": {"min": 0}},
        "schedule": {"type": "recurring", "intervalYears": 1},
    }
    record.update(overrides)
    return Programme.from_dict(record)


class TestFormatDuration:

    @pytest.mark.parametrize("days, expected", [
        (1, "1 days"),
        (29, "29 days"),
        (30, "1 month"),
        (59, "1 month"),
        (60, "2 months"),
        (364, "12 months"),
        (365, "1 year"),
        (800, "2 years"),
    ])
    def test_buckets(self, days, expected):
        assert format_duration(days) == expected


class TestFormatRelativeDate:

    @pytest.mark.parametrize("value, expected", [
        (date(2026, 2, 17), "today"),
        (date(2026, 2, 16), "yesterday"),
        (date(2026, 2, 18), "tomorrow"),
        (date(2026, 2, 14), "3 days ago"),
        (date(2026, 2, 20), "in 3 days"),
        (date(2026, 2, 10), "last week"),
        (date(2026, 2, 3), "2 weeks ago"),
        (date(2026, 2, 24), "in 1 week"),
        (date(2026, 1, 10), "last month"),
        (date(2025, 11, 1), "3 months ago"),
        (date(2026, 4, 1), "in 1 month"),
        (date(2024, 5, 1), "May 2024"),
        (date(2027, 6, 1), "June 2027"),
    ])
    def test_phrases(self, value, expected):
        assert format_relative_date(value, TODAY) == expected


class TestFormatLongDate:

    def test_weekday_day_month_year(self):
        assert format_long_date(date(2026, 2, 17)) == "Tuesday 17 February 2026"


class TestBuildStatusText:

    def test_overdue_default(self):
        info = HistoryInfo(HistoryStatus.OVERDUE, overdue_days=400)
        assert build_status_text(_programme(), DisplayStatus.OVERDUE, info, TODAY) == "Due 1 year ago"

    def test_overdue_on_due_day(self):
        info = HistoryInfo(HistoryStatus.OVERDUE, overdue_days=0)
        assert build_status_text(_programme(), DisplayStatus.OVERDUE, info, TODAY) == "Due 0 days ago"
        assert build_status_text(_programme(), DisplayStatus.ACTION_NEEDED, info, TODAY) == "Due 0 days ago"

    def test_overdue_template_override(self):
        programme = _programme(messages={"overdue": "Your check is {} late"})
        info = HistoryInfo(HistoryStatus.OVERDUE, overdue_days=45)
        assert build_status_text(programme, DisplayStatus.OVERDUE, info, TODAY) == "Your check is 1 month late"

    def test_never_had_screening(self):
        info = HistoryInfo(HistoryStatus.NEVER_HAD)
        text = build_status_text(_programme(), DisplayStatus.ACTION_NEEDED, info, TODAY)
        assert text == "You have not had this check before"

    def test_never_had_vaccine_uses_description(self):
        info = HistoryInfo(HistoryStatus.NEVER_HAD)
        text = build_status_text(_programme(type="vaccine"), DisplayStatus.ACTION_NEEDED, info, TODAY)
        assert text == "A test programme."

    def test_seasonal_action_needed(self):
        programme = _programme(seasonalWindow={"start": "09-01", "end": "03-31"})
        info = HistoryInfo(HistoryStatus.NEVER_HAD)
        text = build_status_text(programme, DisplayStatus.ACTION_NEEDED, info, TODAY)
        assert text == "Available until 31 March 2026"

    def test_upcoming_default_and_override(self):
        info = HistoryInfo(HistoryStatus.UPCOMING, next_due_date=date(2026, 5, 1))
        assert build_status_text(_programme(), DisplayStatus.UPCOMING, info, TODAY) == "Next due in 2 months"
        programme = _programme(messages={"upcoming": "Your next invitation is due {}"})
        text = build_status_text(programme, DisplayStatus.UPCOMING, info, TODAY)
        assert text == "Your next invitation is due in 2 months"

    def test_complete_literal_override(self):
        programme = _programme(messages={"complete": "Given during this pregnancy"})
        info = HistoryInfo(HistoryStatus.COMPLETE, last_date=date(2026, 1, 5))
        assert build_status_text(programme, DisplayStatus.UP_TO_DATE, info, TODAY) == "Given during this pregnancy"

    def test_complete_default(self):
        info = HistoryInfo(HistoryStatus.COMPLETE, last_date=date(2026, 1, 5))
        assert build_status_text(_programme(), DisplayStatus.UP_TO_DATE, info, TODAY) == "You had this last month"

    def test_unknown_override(self):
        programme = _programme(messages={"checkEligibility": "Check if you should get this."})
        info = HistoryInfo(HistoryStatus.NEVER_HAD)
        assert build_status_text(programme, DisplayStatus.UNKNOWN, info, TODAY) == "Check if you should get this."

    def test_in_progress_override(self):
        programme = _programme(messages={"inProgress": "{} doses so far"})
        info = HistoryInfo(HistoryStatus.PARTIAL, doses=1, required_doses=2)
        assert build_status_text(programme, DisplayStatus.IN_PROGRESS, info, TODAY) == "1 of 2 doses so far"

    def test_expired(self):
        info = HistoryInfo(HistoryStatus.OVERDUE, overdue_days=120)
        text = build_status_text(_programme(), DisplayStatus.EXPIRED, info, TODAY)
        assert text == "Was due 4 months ago, no longer showing"
