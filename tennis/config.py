"""Load .env and settings.yaml, expose all configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _load_env() -> None:
    env_path = PROJECT_ROOT / ".env"
    load_dotenv(env_path)


def _load_yaml() -> dict:
    settings_path = PROJECT_ROOT / "settings.yaml"
    if settings_path.exists():
        try:
            with open(settings_path) as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError:
            log.warning("Failed to parse settings.yaml, using defaults")
            return {}
    return {}


class Settings(BaseModel):
    api_key: str = ""

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        return v.strip()

    api_base_url: str = "https://api.tennisdata.com/v1"
    request_timeout: float = 15.0
    # External cache address. Accepted for forward compatibility only:
    # the in-process store is used either way.
    cache_url: str | None = None
    cache_max_entries: int = Field(default=1000, ge=1)
    # resource name -> TTL seconds, overrides tennis_cache.DEFAULT_TTLS
    cache_ttls: dict[str, int] = Field(default_factory=dict)
    db_path: Path = PROJECT_ROOT / "tennis.db"
    sync_interval_hours: float = 6
    sync_match_days: int = 3
    tours: list[str] = Field(default_factory=lambda: ["atp", "wta"])
    log_level: str = "INFO"


def load_settings() -> Settings:
    _load_env()
    raw = _load_yaml()
    raw["api_key"] = os.getenv("TENNIS_API_KEY", raw.get("api_key", ""))
    cache_url = os.getenv("CACHE_URL") or os.getenv("REDIS_URL")
    if cache_url:
        raw["cache_url"] = cache_url
    if os.getenv("TENNIS_DB_PATH"):
        raw["db_path"] = os.environ["TENNIS_DB_PATH"]
    if os.getenv("LOG_LEVEL"):
        raw["log_level"] = os.environ["LOG_LEVEL"]
    return Settings(**raw)
