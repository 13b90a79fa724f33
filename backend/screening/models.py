"""
screening/models.py
-------------------
Data shapes shared by the engine, the store and the routers.

Programmes are immutable catalogue entries parsed once from JSON.  People
are parsed from (and serialised back to) the same camelCase record shape
used by the fixtures and the Supabase `people` table, so every read hands
out a fresh snapshot.

Condition values are three-valued: a missing key is UNKNOWN, never NO.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Union

from screening.dates import calculate_age, parse_date

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tri-state conditions
# ---------------------------------------------------------------------------

class TriState(str, Enum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Any) -> "TriState":
        if value is True:
            return cls.YES
        if value is False:
            return cls.NO
        return cls.UNKNOWN

    def to_value(self) -> bool | None:
        if self is TriState.YES:
            return True
        if self is TriState.NO:
            return False
        return None


# ---------------------------------------------------------------------------
# Message overrides
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiteralMessage:
    """Fixed text, shown as-is."""
    text: str

    def render(self, value: str = "") -> str:
        return self.text


@dataclass(frozen=True)
class TemplateMessage:
    """Text built from a pre-formatted date or duration string."""
    build: Callable[[str], str]

    def render(self, value: str = "") -> str:
        return self.build(value)


Message = Union[LiteralMessage, TemplateMessage]


def message_from_value(value: Any) -> Message | None:
    """
    Turn a catalogue message into a Message.

    Strings with a "{}" placeholder become templates; other strings are
    literals.  Callables are accepted for programmes built in code.
    """
    if callable(value):
        return TemplateMessage(value)
    if isinstance(value, str):
        if "{}" in value:
            return TemplateMessage(value.format)
        return LiteralMessage(value)
    return None


# ---------------------------------------------------------------------------
# Programme definition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AgeBand:
    min: int = 0
    max: int | None = None


@dataclass(frozen=True)
class ConditionGate:
    mode: str                          # "and" | "or"
    required: tuple[str, ...]


@dataclass(frozen=True)
class Eligibility:
    age: AgeBand = field(default_factory=AgeBand)
    sex: str = "all"                   # "all" | "female" | "male"
    conditions: ConditionGate | None = None
    requires: tuple[str, ...] = ()
    exclude_conditions: tuple[str, ...] = ()
    requires_opt_out: str | None = None
    require_conditions: bool = False


@dataclass(frozen=True)
class Schedule:
    type: str = "unknown"              # "one-off" | "recurring" | "multi-dose"
    interval_years: int | None = None
    doses: int | None = None
    expiry_days: int | None = None


@dataclass(frozen=True)
class SeasonalWindow:
    start: str                         # "MM-DD"
    end: str                           # "MM-DD"


@dataclass(frozen=True)
class Programme:
    id: str
    name: str
    type: str                          # "screening" | "vaccine"
    description: str = ""
    settings: tuple[str, ...] = ()
    eligibility: Eligibility = field(default_factory=Eligibility)
    schedule: Schedule = field(default_factory=Schedule)
    overdue_days: int | None = None
    seasonal_window: SeasonalWindow | None = None
    messages: dict[str, Message] = field(default_factory=dict)
    walk_in: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Programme":
        """
        Build a Programme from a catalogue record.

        Missing or malformed blocks fall back to permissive defaults and
        are logged; a bad entry degrades that programme only.
        """
        prog_id = str(data.get("id", "")).strip()
        if not prog_id:
            raise ValueError("programme has no id")

        return cls(
            id=prog_id,
            name=data.get("name") or prog_id,
            type=data.get("type", "screening"),
            description=data.get("description", ""),
            settings=tuple(data.get("settings") or ()),
            eligibility=_parse_eligibility(prog_id, data.get("eligibility")),
            schedule=_parse_schedule(prog_id, data.get("schedule")),
            overdue_days=data.get("overdueDays"),
            seasonal_window=_parse_window(prog_id, data.get("seasonalWindow")),
            messages=_parse_messages(data.get("messages")),
            walk_in=bool(data.get("walkIn", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        elig = self.eligibility
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "settings": list(self.settings),
            "walkIn": self.walk_in,
            "overdueDays": self.overdue_days,
            "seasonalWindow": (
                {"start": self.seasonal_window.start, "end": self.seasonal_window.end}
                if self.seasonal_window else None
            ),
            "eligibility": {
                "age": {"min": elig.age.min, "max": elig.age.max},
                "sex": elig.sex,
                "conditions": (
                    {"mode": elig.conditions.mode, "required": list(elig.conditions.required)}
                    if elig.conditions else None
                ),
                "requires": list(elig.requires),
                "excludeConditions": list(elig.exclude_conditions),
                "requiresOptOut": elig.requires_opt_out,
                "requireConditions": elig.require_conditions,
            },
            "schedule": {
                "type": self.schedule.type,
                "intervalYears": self.schedule.interval_years,
                "doses": self.schedule.doses,
                "expiryDays": self.schedule.expiry_days,
            },
        }


_SCHEDULE_TYPES = {"one-off", "recurring", "multi-dose"}


def _parse_age_bound(prog_id: str, which: str, value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Programme %s has a non-numeric age.%s %r — ignored", prog_id, which, value)
        return None


def _parse_eligibility(prog_id: str, raw: Any) -> Eligibility:
    if not isinstance(raw, dict):
        logger.warning("Programme %s has no eligibility block — using defaults", prog_id)
        return Eligibility()

    age_raw = raw.get("age")
    if isinstance(age_raw, dict):
        age = AgeBand(
            min=_parse_age_bound(prog_id, "min", age_raw.get("min")) or 0,
            max=_parse_age_bound(prog_id, "max", age_raw.get("max")),
        )
    else:
        logger.warning("Programme %s has no eligibility.age — assuming any age", prog_id)
        age = AgeBand()

    gate = None
    cond_raw = raw.get("conditions")
    if isinstance(cond_raw, dict) and cond_raw.get("required"):
        mode = str(cond_raw.get("mode", "and")).lower()
        if mode not in ("and", "or"):
            logger.warning("Programme %s has condition mode %r — treating as 'and'", prog_id, mode)
            mode = "and"
        gate = ConditionGate(mode=mode, required=tuple(cond_raw["required"]))

    return Eligibility(
        age=age,
        sex=raw.get("sex") or "all",
        conditions=gate,
        requires=tuple(raw.get("requires") or ()),
        exclude_conditions=tuple(raw.get("excludeConditions") or ()),
        requires_opt_out=raw.get("requiresOptOut"),
        require_conditions=bool(raw.get("requireConditions", False)),
    )


def _parse_schedule(prog_id: str, raw: Any) -> Schedule:
    if not isinstance(raw, dict):
        logger.warning("Programme %s has no schedule block — treating as complete once had", prog_id)
        return Schedule()

    sched_type = raw.get("type", "unknown")
    if sched_type not in _SCHEDULE_TYPES:
        logger.warning("Programme %s has unsupported schedule type %r", prog_id, sched_type)

    return Schedule(
        type=sched_type,
        interval_years=raw.get("intervalYears"),
        doses=raw.get("doses"),
        expiry_days=raw.get("expiryDays"),
    )


def _parse_window(prog_id: str, raw: Any) -> SeasonalWindow | None:
    if not raw:
        return None
    try:
        start, end = raw["start"], raw["end"]
        for mmdd in (start, end):
            month, day = (int(part) for part in mmdd.split("-"))
            if not (1 <= month <= 12 and 1 <= day <= 31):
                raise ValueError(mmdd)
    except (KeyError, TypeError, ValueError, AttributeError):
        logger.warning("Programme %s has a malformed seasonalWindow %r — ignored", prog_id, raw)
        return None
    return SeasonalWindow(start=start, end=end)


def _parse_messages(raw: Any) -> dict[str, Message]:
    messages: dict[str, Message] = {}
    for key, value in (raw or {}).items():
        message = message_from_value(value)
        if message is not None:
            messages[key] = message
    return messages


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

@dataclass
class HistoryEntry:
    last_date: date | None = None
    doses: int | None = None
    opted_out: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        try:
            last_date = parse_date(data.get("lastDate"))
        except ValueError:
            logger.warning("Ignoring unparsable lastDate %r", data.get("lastDate"))
            last_date = None
        return cls(
            last_date=last_date,
            doses=data.get("doses"),
            opted_out=bool(data.get("optedOut", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.last_date is not None:
            out["lastDate"] = self.last_date.isoformat()
        if self.doses is not None:
            out["doses"] = self.doses
        if self.opted_out:
            out["optedOut"] = True
        return out


@dataclass
class Person:
    """A persona or one of their proxies (dependents).  Proxies have no proxies."""

    id: str
    sex: str
    surname: str = ""
    date_of_birth: date | None = None
    age: int | None = None
    conditions: dict[str, TriState] = field(default_factory=dict)
    history: dict[str, HistoryEntry] = field(default_factory=dict)
    gp_surgery: str | None = None
    pharmacy: str | None = None
    proxies: list["Person"] = field(default_factory=list)

    def age_on(self, today: date) -> int:
        if self.date_of_birth is not None:
            return calculate_age(self.date_of_birth, today)
        return int(self.age or 0)

    def condition(self, key: str) -> TriState:
        return self.conditions.get(key, TriState.UNKNOWN)

    def history_for(self, programme_id: str) -> HistoryEntry | None:
        return self.history.get(programme_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, nested: bool = False) -> "Person":
        dob = parse_date(data.get("dateOfBirth"))
        age = data.get("age")
        if dob is None and age is None:
            raise ValueError(f"person {data.get('id')!r} needs dateOfBirth or age")

        proxies = []
        if not nested:
            proxies = [cls.from_dict(p, nested=True) for p in data.get("proxies") or []]

        return cls(
            id=str(data["id"]),
            sex=data.get("sex", ""),
            surname=data.get("lastName", ""),
            date_of_birth=dob,
            age=age,
            conditions={
                key: TriState.from_value(value)
                for key, value in (data.get("conditions") or {}).items()
            },
            history={
                prog_id: HistoryEntry.from_dict(entry or {})
                for prog_id, entry in (data.get("history") or {}).items()
            },
            gp_surgery=data.get("gpSurgery"),
            pharmacy=data.get("pharmacy"),
            proxies=proxies,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "lastName": self.surname,
            "sex": self.sex,
            "conditions": {
                key: value.to_value()
                for key, value in self.conditions.items()
                if value is not TriState.UNKNOWN
            },
            "history": {prog_id: entry.to_dict() for prog_id, entry in self.history.items()},
        }
        if self.date_of_birth is not None:
            out["dateOfBirth"] = self.date_of_birth.isoformat()
        if self.age is not None:
            out["age"] = self.age
        if self.gp_surgery:
            out["gpSurgery"] = self.gp_surgery
        if self.pharmacy:
            out["pharmacy"] = self.pharmacy
        if self.proxies:
            out["proxies"] = [proxy.to_dict() for proxy in self.proxies]
        return out


# ---------------------------------------------------------------------------
# Display statuses
# ---------------------------------------------------------------------------

class DisplayStatus(str, Enum):
    """The single user-facing state for a (person, programme) pair."""
    ACTION_NEEDED = "action-needed"
    OVERDUE = "overdue"
    IN_PROGRESS = "in-progress"
    BOOKED = "booked"
    UPCOMING = "upcoming"
    UNKNOWN = "unknown"
    UP_TO_DATE = "up-to-date"
    EXPIRED = "expired"
    OPTED_OUT = "opted-out"
