"""
db/supabase_client.py
---------------------
Initializes and exposes a singleton Supabase client, plus the row helpers
used by the Supabase-backed person store.

Public API:
    get_supabase_client()    → cached Client singleton
    fetch_person_record()    → one person's JSON record, or None
    fetch_person_records()   → every stored record
    upsert_person_record()   → insert or replace a person's record

Table layout (`people` by default, see SUPABASE_PEOPLE_TABLE):
    id      text primary key   — persona id
    record  jsonb              — camelCase person record incl. history
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from screening.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Return a cached Supabase client instance.

    The client is created once and reused for the lifetime of the process.
    Credentials are pulled from the app settings (loaded from .env).

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_KEY are not set.
    """
    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY must be set in your .env file."
        )

    client: Client = create_client(settings.supabase_url, settings.supabase_key)
    return client


def _table_name() -> str:
    return get_settings().supabase_people_table


def fetch_person_record(client: Client, person_id: str) -> dict[str, Any] | None:
    result = (
        client
        .table(_table_name())
        .select("record")
        .eq("id", person_id)
        .execute()
    )
    rows = result.data or []
    if not rows:
        return None
    return rows[0].get("record")


def fetch_person_records(client: Client) -> list[dict[str, Any]]:
    result = (
        client
        .table(_table_name())
        .select("id, record")
        .order("id")
        .execute()
    )
    return [row["record"] for row in result.data or [] if row.get("record")]


def upsert_person_record(client: Client, record: dict[str, Any]) -> None:
    """Insert or replace the row for record["id"]."""
    result = (
        client
        .table(_table_name())
        .upsert(
            {"id": record["id"], "record": record},
            on_conflict="id",
        )
        .execute()
    )
    if not result.data:
        logger.warning("Supabase upsert returned no data for person=%s", record["id"])
    else:
        logger.info("Person record saved: id=%s", record["id"])
