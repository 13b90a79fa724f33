"""
screening/routers/programmes.py
-------------------------------
Read-only catalogue endpoints.

  GET /programmes                      → every programme, catalogue order
  GET /programmes/{id}                 → one programme definition
  GET /programmes/{id}/locations       → where it can be had

An unknown id raises ProgrammeNotFound, which the app turns into a 404.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from screening.catalogue import Catalogue
from screening.dependencies import get_catalogue, get_locations

router = APIRouter(prefix="/programmes", tags=["Programmes"])


@router.get("")
async def list_programmes(catalogue: Catalogue = Depends(get_catalogue)):
    return [programme.to_dict() for programme in catalogue]


@router.get("/{programme_id}")
async def get_programme(programme_id: str, catalogue: Catalogue = Depends(get_catalogue)):
    return catalogue.get(programme_id).to_dict()


@router.get("/{programme_id}/locations")
async def programme_locations(
    programme_id: str,
    catalogue: Catalogue = Depends(get_catalogue),
    locations: list[dict[str, Any]] = Depends(get_locations),
):
    return catalogue.locations_for(programme_id, locations)
