# signalist/core/config.py
from __future__ import annotations
import os
from pathlib import Path
from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator

# Resolves to <repo-root>/.env when this file is at signalist/core/config.py
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_POPULAR_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "NFLX", "ORCL", "CRM",
    "ADBE", "INTC", "AMD", "PYPL", "UBER",
]


def _parse_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).lower() in ("1", "true", "yes", "on")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Signalist"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: Annotated[List[str], NoDecode] = []
    ALLOWED_ORIGINS: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # --- MongoDB
    MONGO_URI: str = "mongodb://127.0.0.1:27017"
    MONGO_DB_NAME: str = "signalist"

    # --- Auth
    SECRET_KEY: str = "dev"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # --- Finnhub
    FINNHUB_API_KEY: Optional[str] = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # --- News pipeline
    NEWS_MAX_ARTICLES: int = 6
    NEWS_LOOKBACK_DAYS: int = 5
    NEWS_CACHE_SECONDS: int = 300
    NEWS_DEDUPE_SCAN_LIMIT: int = 20

    # --- Stock search
    SEARCH_CACHE_SECONDS: int = 1800
    PROFILE_CACHE_SECONDS: int = 3600
    SEARCH_MAX_RESULTS: int = 15
    POPULAR_SYMBOLS: Annotated[List[str], NoDecode] = DEFAULT_POPULAR_SYMBOLS

    # --- Email (SMTP)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM_NAME: str = "Signalist"
    FRONTEND_URL: str = "http://localhost:3000"

    # --- Scheduler
    ENABLE_SCHEDULER: bool = True
    DAILY_DIGEST_HOUR: int = 12  # UTC

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v):
        if isinstance(v, list):
            return v
        raw = v or os.getenv("ALLOWED_ORIGINS", "")
        return [o.strip() for o in str(raw).split(",") if o.strip()]

    @field_validator("POPULAR_SYMBOLS", mode="before")
    @classmethod
    def _parse_popular_symbols(cls, v):
        if isinstance(v, list):
            return [t.strip().upper() for t in v if t and t.strip()]
        return [t.strip().upper() for t in str(v or "").split(",") if t.strip()]

    @field_validator("ENABLE_SCHEDULER", mode="before")
    @classmethod
    def _parse_scheduler_bool(cls, v):
        return _parse_bool(v)

    @field_validator("NEWS_MAX_ARTICLES")
    @classmethod
    def _validate_max_articles(cls, v):
        if v <= 0:
            raise ValueError("NEWS_MAX_ARTICLES must be positive")
        return v

    @field_validator("DAILY_DIGEST_HOUR")
    @classmethod
    def _validate_digest_hour(cls, v):
        if not 0 <= v <= 23:
            raise ValueError("DAILY_DIGEST_HOUR must be between 0 and 23")
        return v


settings = Settings()
