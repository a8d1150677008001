"""
Peezy - Configuration and settings.

Values come from the environment or a local .env file. Catalog paths default
to the sample catalogs bundled in peezy/data.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PeezySettings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    peezy_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Catalogs (None = bundled sample)
    peezy_task_catalog_path: Path | None = None
    peezy_vendor_catalog_path: Path | None = None

    # Answer derivation
    long_distance_threshold_miles: float = Field(default=50.0, gt=0)

    # Task generation
    default_urgency_percentage: int = Field(default=50, ge=0, le=100)

    @property
    def is_development(self) -> bool:
        return self.peezy_env == "development"

    @property
    def is_production(self) -> bool:
        return self.peezy_env == "production"


@lru_cache
def get_settings() -> PeezySettings:
    """Get cached settings instance."""
    return PeezySettings()


class _SettingsProxy:
    """Lazy proxy so importing this module never reads the environment."""

    _instance: PeezySettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
