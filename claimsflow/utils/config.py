"""
Configuration management using pydantic-settings.

Loads settings from environment variables (prefix ``CLAIMSFLOW_``) and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "claims.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLAIMSFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_path: Path = Field(
        default=DEFAULT_DB_PATH,
        description="SQLite file holding claim records",
    )

    # Triage
    scoring_seed: Optional[int] = Field(
        default=None,
        description="Seed for score perturbation. Unset means fresh entropy per claim.",
    )

    # Intake
    session_idle_minutes: int = Field(
        default=60,
        ge=1,
        description="Minutes of inactivity after which an intake session expires",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.log_level.upper()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-reading environment on every call.
    """
    return Settings()
