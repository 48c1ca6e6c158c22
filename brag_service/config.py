"""
Brag Service Configuration Module

HTTP-surface settings with Pydantic validation, checked once at startup.
Generation and storage settings live in brag.common.config.Config.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ServiceSettings(BaseSettings):
    """
    Brag service configuration.

    All settings can be overridden via environment variables of the same
    name (case-insensitive).
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, extra="ignore")

    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins",
    )
    brag_data_dir: Optional[str] = Field(
        default=None,
        description="Directory for the ledger and generated batch (overrides BRAG_DATA_DIR)",
    )
    brag_offline: bool = Field(
        default=False,
        description="Skip the text generation backend and always use fallback synthesis",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("brag_data_dir")
    @classmethod
    def blank_data_dir_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> ServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once per process; tests clear the cache with
    get_settings.cache_clear().
    """
    return ServiceSettings()


def validate_config_on_startup() -> ServiceSettings:
    """
    Validate service and generation configuration at startup.

    Raises:
        ValueError: With details if either configuration is invalid
    """
    from brag.common.config import Config

    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e

    Config.validate()

    if settings.is_production and not settings.cors_origins:
        logger.warning("CORS_ORIGINS not configured")

    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  offline={settings.brag_offline}")
    logger.info(f"  data_dir={settings.brag_data_dir or Config.BRAG_DATA_DIR}")
    return settings
