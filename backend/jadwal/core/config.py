from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_SCHOOL_DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"]


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
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="JADWAL_",
    )

    project_name: str = "Jadwal Timetable API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+pysqlite:///./jadwal.db"

    school_days: list[str] = list(DEFAULT_SCHOOL_DAYS)
    # Used to size the school day when no study plan defines any grade (7 periods a day).
    default_weekly_lessons: int = 35
    # None keeps every snapshot for the whole session.
    undo_history_limit: int | None = None
    oracle_timeout_seconds: float | None = None
    core_subjects: list[str] = ["Mathematics", "Arabic", "English", "Science"]

    staff_channel_root: str = "schedules"
    student_channel_root: str = "student_schedules"
    study_plans_root: str = "study_plans"

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", "school_days", "core_subjects", mode="before")
    @classmethod
    def split_list_values(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)

    @field_validator("school_days")
    @classmethod
    def validate_school_days(cls, value: list[str]) -> list[str]:
        if len(value) != len(set(value)):
            raise ValueError("school_days must not repeat a day")
        if not value:
            raise ValueError("school_days must name at least one day")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
