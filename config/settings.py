from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Core/runtime
    db_path: str
    run_env: str
    log_level: str

    # Acquisition
    batch_size: int
    scroll_min_delay_seconds: float
    scroll_max_delay_seconds: float
    max_scrolls: int
    no_change_threshold: int
    pause_poll_seconds: float
    wait_timeout_seconds: float

    # Retry
    max_retries: int
    retry_base_seconds: float
    retry_on_empty: bool

    # Serializer (global FIFO rate limiter)
    rate_limit_per_hour: int
    rate_min_delay_seconds: float
    rate_max_delay_seconds: float
    rate_max_queue: int

    # Ranking
    weight_connection: float
    weight_keyword: float
    weight_completeness: float
    weight_activity: float
    search_result_limit: int
    activity_window_days: int

    # Locator overrides (JSON file)
    locators_path: str | None = None

    # Optional storage quota used for usage percentage reporting
    storage_quota_bytes: int | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    scroll_min = float(os.getenv("SCROLL_MIN_DELAY", "2.0"))
    scroll_max = float(os.getenv("SCROLL_MAX_DELAY", "5.0"))
    if scroll_max < scroll_min:
        raise RuntimeError("SCROLL_MAX_DELAY must be >= SCROLL_MIN_DELAY")
    quota = os.getenv("STORAGE_QUOTA_BYTES")
    return Settings(
        db_path=os.getenv("DB_PATH", "network.db"),
        run_env=os.getenv("RUN_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        batch_size=int(os.getenv("SCRAPE_BATCH_SIZE", "50")),
        scroll_min_delay_seconds=scroll_min,
        scroll_max_delay_seconds=scroll_max,
        max_scrolls=int(os.getenv("MAX_SCROLLS", "200")),
        no_change_threshold=int(os.getenv("NO_CHANGE_THRESHOLD", "5")),
        pause_poll_seconds=float(os.getenv("PAUSE_POLL_SECONDS", "1.0")),
        wait_timeout_seconds=float(os.getenv("WAIT_TIMEOUT_SECONDS", "15")),
        max_retries=int(os.getenv("MAX_RETRIES", "3")),
        retry_base_seconds=float(os.getenv("RETRY_BASE_SECONDS", "1.0")),
        retry_on_empty=_as_bool(os.getenv("RETRY_ON_EMPTY"), default=True),
        rate_limit_per_hour=int(os.getenv("RATE_LIMIT_PER_HOUR", "100")),
        rate_min_delay_seconds=float(os.getenv("RATE_MIN_DELAY", "5.0")),
        rate_max_delay_seconds=float(os.getenv("RATE_MAX_DELAY", "15.0")),
        rate_max_queue=int(os.getenv("RATE_MAX_QUEUE", "1000")),
        weight_connection=float(os.getenv("RANK_WEIGHT_CONNECTION", "0.4")),
        weight_keyword=float(os.getenv("RANK_WEIGHT_KEYWORD", "0.3")),
        weight_completeness=float(os.getenv("RANK_WEIGHT_COMPLETENESS", "0.2")),
        weight_activity=float(os.getenv("RANK_WEIGHT_ACTIVITY", "0.1")),
        search_result_limit=int(os.getenv("SEARCH_RESULT_LIMIT", "50")),
        activity_window_days=int(os.getenv("ACTIVITY_WINDOW_DAYS", "30")),
        locators_path=os.getenv("LOCATORS_PATH") or None,
        storage_quota_bytes=int(quota) if quota else None,
    )
