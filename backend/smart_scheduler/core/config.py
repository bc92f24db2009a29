from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
DEFAULT_DATABASE_FILE = Path(__file__).resolve().parents[2] / "smart_scheduler.db"


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Smart Scheduler API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    database_url: str = f"sqlite+pysqlite:///{DEFAULT_DATABASE_FILE}"

    # Nominal weekly capacities used for utilization percentages.
    faculty_weekly_capacity_hours: float = 40.0
    room_weekly_capacity_hours: float = 50.0

    slot_days: list[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    slot_start_hour: int = 8
    slot_end_hour: int = 18
    slot_width_minutes: int = 60

    lifecycle_timeout_seconds: float = 10.0

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "slot_days", mode="before")
    @classmethod
    def split_lists(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)


@lru_cache
def get_settings() -> Settings:
    return Settings()
