"""Environment-driven settings (a local .env is loaded first)."""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    database_url: Optional[str] = None
    google_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    pool_min_size: int = Field(2, ge=1)
    pool_max_size: int = Field(10, ge=1)
    statement_cache_size: int = Field(100, ge=0)
    schema_cache_retries: int = Field(3, ge=0)
    schema_cache_retry_delay: float = Field(1.0, ge=0)
    wizard_redirect_delay: float = Field(1.5, ge=0)
    wizard_session_ttl: float = Field(1800.0, gt=0)
    wizard_max_sessions: int = Field(500, ge=1)
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"


def _env_list(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    raw = {
        "database_url": os.environ.get("DATABASE_URL"),
        "google_api_key": os.environ.get("GOOGLE_API_KEY"),
        "gemini_model": os.environ.get("GEMINI_MODEL"),
        "pool_min_size": os.environ.get("DB_POOL_MIN_SIZE"),
        "pool_max_size": os.environ.get("DB_POOL_MAX_SIZE"),
        "statement_cache_size": os.environ.get("DB_STATEMENT_CACHE_SIZE"),
        "schema_cache_retries": os.environ.get("SCHEMA_CACHE_RETRIES"),
        "schema_cache_retry_delay": os.environ.get("SCHEMA_CACHE_RETRY_DELAY"),
        "wizard_redirect_delay": os.environ.get("WIZARD_REDIRECT_DELAY"),
        "wizard_session_ttl": os.environ.get("WIZARD_SESSION_TTL"),
        "wizard_max_sessions": os.environ.get("WIZARD_MAX_SESSIONS"),
        "cors_origins": _env_list(os.environ.get("CORS_ORIGINS")),
        "log_level": os.environ.get("LOG_LEVEL"),
    }
    return Settings(**{k: v for k, v in raw.items() if v is not None})
