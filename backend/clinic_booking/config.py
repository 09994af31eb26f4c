# backend/clinic_booking/config.py

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/clinic.db"
    redis_url: str = "redis://localhost:6379/0"

    clinic_timezone: str = "Asia/Bangkok"
    locale: str = "en"

    slot_capacity: int = 2
    min_lead_minutes: int = 30

    # "local" is enough for a single worker process; run several workers
    # against one database only with "redis".
    lock_backend: Literal["local", "redis"] = "local"
    lock_timeout_seconds: float = 10.0

    # Weekday name -> ["HH:MM", "HH:MM"] or null (closed).
    # None keeps the built-in clinic hours.
    weekly_hours: Optional[dict[str, Optional[list[str]]]] = None

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path is anchored at the repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
