#!/usr/bin/env python3
"""
scripts/show_person.py
----------------------
Print the grouped screening and vaccination list for one persona.

Runs the engine locally against the bundled fixtures:
    python scripts/show_person.py Margaret
    python scripts/show_person.py Margaret --today 2026-02-17
    python scripts/show_person.py Amelia --proxy Ryan

Or asks a running server instead:
    python scripts/show_person.py Margaret --url http://localhost:8000
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from db.person_store import InMemoryPersonStore, PersonNotFound  # noqa: E402
from screening.catalogue import load_catalogue  # noqa: E402
from screening.config import get_settings, get_today  # noqa: E402
from screening.engine import get_programmes_for_person  # noqa: E402
from screening.report import group_results, render_text  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show a persona's screenings and vaccinations")
    parser.add_argument("person", help="Persona id, e.g. Margaret")
    parser.add_argument("--proxy", default=None, help="Show one of the persona's proxies instead")
    parser.add_argument(
        "--today", type=date.fromisoformat, default=None,
        help="Evaluate as of this date (YYYY-MM-DD, default: TODAY setting or the real date)",
    )
    parser.add_argument("--url", default=None, help="Base URL of a running API to query instead")
    return parser


def fetch_remote(url: str, person_id: str, proxy: str | None) -> str:
    params = {"proxy": proxy} if proxy else {}
    resp = httpx.get(
        f"{url.rstrip('/')}/people/{person_id}/programmes/text",
        params=params,
        timeout=15.0,
    )
    resp.raise_for_status()
    return resp.text


def render_local(person_id: str, proxy: str | None, today: date) -> str:
    settings = get_settings()
    catalogue = load_catalogue(settings.catalogue_path)
    store = InMemoryPersonStore.from_fixture(settings.personas_path)
    person = store.get(person_id, proxy)
    rows = get_programmes_for_person(person, catalogue, today)
    return render_text(person, group_results(rows), today)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.url:
        try:
            print(fetch_remote(args.url, args.person, args.proxy), end="")
        except httpx.HTTPStatusError as e:
            print(f"API error: HTTP {e.response.status_code}", file=sys.stderr)
            print(f"    {e.response.text}", file=sys.stderr)
            return 1
        except httpx.HTTPError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    today = args.today or get_today()
    try:
        print(render_local(args.person, args.proxy, today), end="")
    except PersonNotFound as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
