"""
tests/test_catalogue.py
-----------------------
Unit tests for catalogue and fixture loading (screening/catalogue.py).

Run with:
    pytest tests/test_catalogue.py -v
"""

import json
import logging

import pytest

from screening.catalogue import (
    CatalogueError,
    ProgrammeNotFound,
    build_catalogue,
    load_catalogue,
    load_locations,
)
from screening.config import Settings
from screening.models import LiteralMessage, TemplateMessage


@pytest.fixture(scope="module")
def settings():
    return Settings()


class TestBundledCatalogue:

    def test_loads_every_programme(self, settings):
        catalogue = load_catalogue(settings.catalogue_path)
        assert len(catalogue) == 32
        assert "flu-vaccine" in catalogue
        assert "bowel-cancer" in catalogue

    def test_lookup_by_id(self, settings):
        flu = load_catalogue(settings.catalogue_path).get("flu-vaccine")
        assert flu.seasonal_window.start == "09-01"
        assert flu.eligibility.conditions.mode == "or"
        assert isinstance(flu.messages["checkEligibility"], LiteralMessage)

    def test_unknown_id_raises(self, settings):
        catalogue = load_catalogue(settings.catalogue_path)
        with pytest.raises(ProgrammeNotFound) as exc_info:
            catalogue.get("no-such-programme")
        assert exc_info.value.programme_id == "no-such-programme"
        assert isinstance(exc_info.value, KeyError)

    def test_locations_for_programme(self, settings):
        catalogue = load_catalogue(settings.catalogue_path)
        locations = load_locations(settings.locations_path)
        found = catalogue.locations_for("flu-vaccine", locations)
        assert found
        assert {loc["type"] for loc in found} <= {"gp-surgery", "pharmacy"}


class TestMalformedEntries:

    def test_missing_blocks_fall_back_to_defaults(self, caplog):
        with caplog.at_level(logging.WARNING):
            catalogue = build_catalogue([{"id": "bare", "name": "Bare"}])
        programme = catalogue.get("bare")
        assert programme.eligibility.age.min == 0
        assert programme.eligibility.age.max is None
        assert programme.eligibility.sex == "all"
        assert programme.schedule.type == "unknown"
        assert "no eligibility block" in caplog.text

    def test_non_numeric_age_max_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            catalogue = build_catalogue([{"id": "odd-age", "eligibility": {"age": {"min": 50, "max": "seventy"}}}])
        age = catalogue.get("odd-age").eligibility.age
        assert age.min == 50
        assert age.max is None
        assert "non-numeric age.max" in caplog.text

    def test_numeric_string_age_bounds_are_converted(self):
        catalogue = build_catalogue([{"id": "str-age", "eligibility": {"age": {"min": "50", "max": "74"}}}])
        age = catalogue.get("str-age").eligibility.age
        assert (age.min, age.max) == (50, 74)

    def test_entry_without_id_is_skipped(self):
        catalogue = build_catalogue([{"name": "Nameless"}, {"id": "ok"}])
        assert [p.id for p in catalogue] == ["ok"]

    def test_duplicate_ids_keep_first(self):
        catalogue = build_catalogue([{"id": "dup", "name": "First"}, {"id": "dup", "name": "Second"}])
        assert len(catalogue) == 1
        assert catalogue.get("dup").name == "First"

    def test_bad_seasonal_window_is_ignored(self):
        catalogue = build_catalogue([{"id": "odd", "seasonalWindow": {"start": "13-40", "end": "03-31"}}])
        assert catalogue.get("odd").seasonal_window is None

    def test_template_message(self):
        catalogue = build_catalogue([{"id": "t", "messages": {"overdue": "Late by {}"}}])
        message = catalogue.get("t").messages["overdue"]
        assert isinstance(message, TemplateMessage)
        assert message.render("2 months") == "Late by 2 months"


class TestFileErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogueError):
            load_catalogue(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogueError):
            load_catalogue(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "object.json"
        path.write_text(json.dumps({"id": "x"}), encoding="utf-8")
        with pytest.raises(CatalogueError):
            load_catalogue(path)
