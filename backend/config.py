"""Backend settings loaded from the environment (and a local .env file)."""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration for the catalog API."""
    database_path: str = field(default_factory=lambda: os.getenv("DATABASE_PATH", "trickipedia.db"))
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379"))
    catalog_cache_ttl: int = field(default_factory=lambda: int(os.getenv("CATALOG_CACHE_TTL", "300")))
    cors_origins: List[str] = field(default_factory=lambda: _split_csv(os.getenv("CORS_ORIGINS", "*")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


_settings: Settings = None


def get_settings() -> Settings:
    """Get the process-wide settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
