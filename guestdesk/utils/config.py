"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    offer_ttl_minutes: int
    assignment_random_seed: Optional[int]
    seed_demo_data: bool
    change_feed_enabled: bool
    api_host: str
    api_port: int
    server_reload: bool
    open_docs_on_start: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests override fields with `replace`."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Guest Desk"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=Path(
            os.getenv("DATABASE_PATH", str(PROJECT_ROOT / "data" / "guestdesk.db"))
        ),
        offer_ttl_minutes=int(os.getenv("OFFER_TTL_MINUTES", "5")),
        assignment_random_seed=_env_optional_int("ASSIGNMENT_RANDOM_SEED"),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        change_feed_enabled=_env_bool("CHANGE_FEED_ENABLED", True),
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=int(os.getenv("API_PORT", "8000")),
        server_reload=_env_bool("SERVER_RELOAD", False),
        open_docs_on_start=_env_bool("OPEN_DOCS_ON_START", False),
    )
