from datetime import date
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_DATA_DIR = Path(__file__).resolve().parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Fixture catalogues
    catalogue_path: Path = _DATA_DIR / "programmes.json"
    personas_path: Path = _DATA_DIR / "personas.json"
    locations_path: Path = _DATA_DIR / "locations.json"

    # Pin "today" for demos (YYYY-MM-DD); unset uses the real date
    today: date | None = None

    # Person records: "memory" (seeded from personas) or "supabase"
    person_store: str = "memory"

    # Supabase (only needed when person_store=supabase)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_people_table: str = "people"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""
    return Settings()


def get_today(settings: Settings | None = None) -> date:
    """Return the pinned demo date if configured, otherwise the real date."""
    settings = settings or get_settings()
    return settings.today or date.today()
