"""
screening/dependencies.py
-------------------------
FastAPI dependencies shared by the routers.  Each is a plain function so
tests can swap it out through app.dependency_overrides.
"""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Any

from db.person_store import PersonStore, get_person_store
from screening.catalogue import Catalogue, load_catalogue, load_locations
from screening.config import get_settings, get_today


@lru_cache()
def get_catalogue() -> Catalogue:
    return load_catalogue(get_settings().catalogue_path)


@lru_cache()
def get_locations() -> list[dict[str, Any]]:
    return load_locations(get_settings().locations_path)


def get_store() -> PersonStore:
    return get_person_store()


def get_request_today() -> date:
    """Today's date for this request (pinned by TODAY in .env for demos)."""
    return get_today()
