"""
screening/catalogue.py
----------------------
Loads the programme catalogue and the fixture files that sit beside it.

The catalogue is read once and never changes for the life of the process.
A malformed programme is loaded with fallback defaults (see
screening.models) so one bad entry can't take the whole list down; only a
missing or unreadable file is an error.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

from screening.models import Programme

logger = logging.getLogger(__name__)


class CatalogueError(Exception):
    """Raised when a fixture file cannot be loaded."""


class ProgrammeNotFound(KeyError):
    """Raised when a programme id is not in the catalogue."""

    def __init__(self, programme_id: str):
        super().__init__(programme_id)
        self.programme_id = programme_id

    def __str__(self) -> str:
        return f"Programme not found: {self.programme_id}"


class Catalogue:
    """Read-only, ordered collection of programmes with lookup by id."""

    def __init__(self, programmes: list[Programme]):
        self._programmes = tuple(programmes)
        self._by_id = {p.id: p for p in self._programmes}

    def __iter__(self) -> Iterator[Programme]:
        return iter(self._programmes)

    def __len__(self) -> int:
        return len(self._programmes)

    def __contains__(self, programme_id: object) -> bool:
        return programme_id in self._by_id

    def get(self, programme_id: str) -> Programme:
        try:
            return self._by_id[programme_id]
        except KeyError:
            raise ProgrammeNotFound(programme_id) from None

    def locations_for(self, programme_id: str, locations: list[dict]) -> list[dict]:
        """Locations whose type is one of the settings the programme is delivered in."""
        settings = set(self.get(programme_id).settings)
        return [loc for loc in locations if loc.get("type") in settings]


def read_json(path: str | Path) -> Any:
    """Read a JSON fixture file, raising CatalogueError on any failure."""
    path = Path(path)
    if not path.is_file():
        raise CatalogueError(f"Fixture file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogueError(f"Fixture file has invalid JSON: {path}: {e}") from e


def build_catalogue(records: list[dict[str, Any]]) -> Catalogue:
    """Parse programme records, skipping only entries with no usable id."""
    programmes: list[Programme] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("Catalogue entry %d is not an object — skipped", index)
            continue
        try:
            programme = Programme.from_dict(record)
        except (TypeError, ValueError) as exc:
            logger.warning("Catalogue entry %d skipped: %s", index, exc)
            continue
        if programme.id in seen:
            logger.warning("Duplicate programme id %s — later entry skipped", programme.id)
            continue
        seen.add(programme.id)
        programmes.append(programme)
    return Catalogue(programmes)


def load_catalogue(path: str | Path) -> Catalogue:
    records = read_json(path)
    if not isinstance(records, list):
        raise CatalogueError(f"Catalogue must be a JSON list of programmes: {path}")
    catalogue = build_catalogue(records)
    logger.info("Loaded %d programmes from %s", len(catalogue), path)
    return catalogue


def load_locations(path: str | Path) -> list[dict[str, Any]]:
    locations = read_json(path)
    if not isinstance(locations, list):
        raise CatalogueError(f"Locations must be a JSON list: {path}")
    return locations
