import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from santa.core.errors import ConfigInvalid

load_dotenv()

DEFAULT_WORKER_COUNT = 8
DEFAULT_MAX_PICKS = 10_000


@dataclass(frozen=True)
class Settings:
    log_level: str
    log_path: Optional[str]
    database_url: Optional[str]
    worker_count: int
    max_picks: int


def _positive_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigInvalid(f"{key} must be an integer, got {raw!r}.") from exc
    if value < 1:
        raise ConfigInvalid(f"{key} must be at least 1, got {value}.")
    return value


def load_settings() -> Settings:
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH") or None
    database_url = os.getenv("DATABASE_URL") or None

    return Settings(
        log_level=log_level,
        log_path=log_path,
        database_url=database_url,
        worker_count=_positive_int("SANTA_WORKERS", DEFAULT_WORKER_COUNT),
        max_picks=_positive_int("SANTA_MAX_PICKS", DEFAULT_MAX_PICKS),
    )
