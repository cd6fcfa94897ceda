"""
Service settings for coachcore.

Loaded from COACHCORE_* environment variables or a local .env file.
Classifier thresholds are intentionally absent: they are constants in
orchestrator/status.py.
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COACHCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Coachcore Progress Service", description="FastAPI application title")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    lookback_days: int = Field(
        default=7,
        ge=1,
        description="Window for check-ins and support actions on the coach dashboard",
    )
    seed_file: Optional[Path] = Field(
        default=None,
        description="YAML snapshot loaded into the record store at startup",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
