"""
db/person_store.py
------------------
Person-record store.

The eligibility engine only ever sees Person snapshots: every read parses
a fresh Person from the stored JSON record, so nothing the engine or a
router holds can change a stored record behind the store's back.  Writes
go through explicit operations, each touching one person (or one of their
proxies) and returning the updated snapshot.

Backends:
    InMemoryPersonStore  — seeded from the personas fixture, process memory
    SupabasePersonStore  — one row per person in the `people` table
"""

from __future__ import annotations

import copy
import logging
from functools import lru_cache
from typing import Any, Protocol

from db.supabase_client import (
    fetch_person_record,
    fetch_person_records,
    get_supabase_client,
    upsert_person_record,
)
from screening.catalogue import read_json
from screening.config import Settings, get_settings
from screening.models import HistoryEntry, Person, TriState

logger = logging.getLogger(__name__)


class PersonNotFound(KeyError):
    """Raised when a person (or proxy) id is not in the store."""

    def __init__(self, person_id: str, proxy_id: str | None = None):
        super().__init__(person_id)
        self.person_id = person_id
        self.proxy_id = proxy_id

    def __str__(self) -> str:
        if self.proxy_id:
            return f"Person not found: {self.person_id}/{self.proxy_id}"
        return f"Person not found: {self.person_id}"


class PersonStoreError(RuntimeError):
    """Raised when the storage backend fails."""


class PersonStore(Protocol):
    """Interface the routers and actions depend on."""

    def get(self, person_id: str, proxy_id: str | None = None) -> Person:
        """Snapshot of a person, or of one of their proxies."""
        ...

    def list_people(self) -> list[Person]:
        ...

    def save(self, person: Person) -> Person:
        """Insert or replace a whole person record (proxies included)."""
        ...

    def record_history(
        self,
        person_id: str,
        programme_id: str,
        entry: HistoryEntry,
        proxy_id: str | None = None,
    ) -> Person:
        """Write one history entry, replacing any existing one."""
        ...

    def remove_history(
        self,
        person_id: str,
        programme_id: str,
        proxy_id: str | None = None,
    ) -> Person:
        """Delete one history entry (no-op if absent)."""
        ...

    def set_condition(
        self,
        person_id: str,
        key: str,
        value: TriState,
        proxy_id: str | None = None,
    ) -> Person:
        """Record a condition answer; UNKNOWN clears it."""
        ...


# ---------------------------------------------------------------------------
# Shared record handling
# ---------------------------------------------------------------------------

class _RecordStore:
    """
    Implements the PersonStore operations over raw JSON records.
    Subclasses provide _load / _load_all / _store.
    """

    def _load(self, person_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def _load_all(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    def _store(self, record: dict[str, Any]) -> None:
        raise NotImplementedError

    def _require(self, person_id: str) -> dict[str, Any]:
        record = self._load(person_id)
        if record is None:
            raise PersonNotFound(person_id)
        return record

    @staticmethod
    def _subject(record: dict[str, Any], person_id: str, proxy_id: str | None) -> dict[str, Any]:
        if proxy_id is None:
            return record
        for proxy in record.get("proxies") or []:
            if proxy.get("id") == proxy_id:
                return proxy
        raise PersonNotFound(person_id, proxy_id)

    def get(self, person_id: str, proxy_id: str | None = None) -> Person:
        record = self._require(person_id)
        subject = self._subject(record, person_id, proxy_id)
        return Person.from_dict(subject, nested=proxy_id is not None)

    def list_people(self) -> list[Person]:
        return [Person.from_dict(record) for record in self._load_all()]

    def save(self, person: Person) -> Person:
        self._store(person.to_dict())
        logger.info("Person saved: id=%s", person.id)
        return self.get(person.id)

    def _update(self, person_id: str, proxy_id: str | None, change) -> Person:
        record = self._require(person_id)
        subject = self._subject(record, person_id, proxy_id)
        change(subject)
        self._store(record)
        return Person.from_dict(subject, nested=proxy_id is not None)

    def record_history(
        self,
        person_id: str,
        programme_id: str,
        entry: HistoryEntry,
        proxy_id: str | None = None,
    ) -> Person:
        def change(subject: dict[str, Any]) -> None:
            subject.setdefault("history", {})[programme_id] = entry.to_dict()

        person = self._update(person_id, proxy_id, change)
        logger.info(
            "History written: person=%s proxy=%s programme=%s entry=%s",
            person_id, proxy_id, programme_id, entry.to_dict(),
        )
        return person

    def remove_history(
        self,
        person_id: str,
        programme_id: str,
        proxy_id: str | None = None,
    ) -> Person:
        def change(subject: dict[str, Any]) -> None:
            (subject.get("history") or {}).pop(programme_id, None)

        person = self._update(person_id, proxy_id, change)
        logger.info(
            "History removed: person=%s proxy=%s programme=%s",
            person_id, proxy_id, programme_id,
        )
        return person

    def set_condition(
        self,
        person_id: str,
        key: str,
        value: TriState,
        proxy_id: str | None = None,
    ) -> Person:
        def change(subject: dict[str, Any]) -> None:
            conditions = subject.setdefault("conditions", {})
            if value is TriState.UNKNOWN:
                conditions.pop(key, None)
            else:
                conditions[key] = value.to_value()

        person = self._update(person_id, proxy_id, change)
        logger.info(
            "Condition answered: person=%s proxy=%s %s=%s",
            person_id, proxy_id, key, value.value,
        )
        return person


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class InMemoryPersonStore(_RecordStore):
    """Process-memory store.  Records are deep-copied in and out."""

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self._records: dict[str, dict[str, Any]] = {}
        for record in records or []:
            Person.from_dict(record)          # validate shape up front
            self._records[str(record["id"])] = copy.deepcopy(record)

    @classmethod
    def from_fixture(cls, path) -> "InMemoryPersonStore":
        records = read_json(path)
        logger.info("Seeding in-memory person store from %s", path)
        return cls(records)

    def _load(self, person_id: str) -> dict[str, Any] | None:
        record = self._records.get(person_id)
        return copy.deepcopy(record) if record is not None else None

    def _load_all(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._records.values()]

    def _store(self, record: dict[str, Any]) -> None:
        self._records[str(record["id"])] = copy.deepcopy(record)


class SupabasePersonStore(_RecordStore):
    """Supabase-backed store; backend errors surface as PersonStoreError."""

    def __init__(self, client=None):
        if client is None:
            client = get_supabase_client()
        self._client = client

    def _load(self, person_id: str) -> dict[str, Any] | None:
        try:
            return fetch_person_record(self._client, person_id)
        except Exception as exc:
            logger.error("Supabase read failed for person=%s: %s", person_id, exc)
            raise PersonStoreError(f"could not load person {person_id}") from exc

    def _load_all(self) -> list[dict[str, Any]]:
        try:
            return fetch_person_records(self._client)
        except Exception as exc:
            logger.error("Supabase list failed: %s", exc)
            raise PersonStoreError("could not list people") from exc

    def _store(self, record: dict[str, Any]) -> None:
        try:
            upsert_person_record(self._client, record)
        except Exception as exc:
            logger.error("Supabase write failed for person=%s: %s", record.get("id"), exc)
            raise PersonStoreError(f"could not save person {record.get('id')}") from exc


def create_person_store(settings: Settings | None = None) -> PersonStore:
    """Build a new store of the kind selected by PERSON_STORE."""
    settings = settings or get_settings()
    backend = settings.person_store.lower()
    if backend == "supabase":
        return SupabasePersonStore()
    if backend != "memory":
        logger.warning("Unknown PERSON_STORE=%r — falling back to memory", settings.person_store)
    return InMemoryPersonStore.from_fixture(settings.personas_path)


@lru_cache()
def get_person_store() -> PersonStore:
    """Return the process-wide person store."""
    return create_person_store()
