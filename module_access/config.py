"""
Module access configuration.

Loaded from environment variables (prefix MODULE_ACCESS_) with sensible
defaults. A .env file in the working directory is read as well.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AccessConfig(BaseSettings):
    """Settings for the registry, engine logging and context assembly."""

    model_config = SettingsConfigDict(
        env_prefix="MODULE_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # ENVIRONMENT
    # =========================================================================

    environment: Literal["local", "development", "test", "production"] = Field(
        default="local",
        description="Deployment environment",
    )

    # =========================================================================
    # REGISTRY
    # =========================================================================

    registry_path: Path | None = Field(
        default=None,
        description="Module tree file (.json/.yaml/.yml) or directory of module files",
    )

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON logs (production) instead of colored console logs",
    )
    log_denials: bool = Field(
        default=True,
        description="Log every DENY decision (unknown permissions are always logged)",
    )

    # =========================================================================
    # CONTEXT ASSEMBLY
    # =========================================================================

    context_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for fetching tenant plan and role grants",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_access_config() -> AccessConfig:
    """Get cached access config instance."""
    return AccessConfig()
