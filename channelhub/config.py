"""
Shared Configuration Module

Centralized configuration for the channelhub core and its HTTP service using
Pydantic Settings. Supports environment variables, .env files, and runtime
overrides (tests build their own ``Settings`` instances).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=True, description="Enable debug mode")

    # HTTP service
    api_v1_prefix: str = "/api/v1"
    service_host: str = "0.0.0.0"
    service_port: int = 8010

    # Reputation
    rating_floor: float = Field(default=3.0, ge=0.0, le=5.0)
    rating_ceiling: float = Field(default=5.0, ge=0.0, le=5.0)
    subscribers_per_star: int = Field(
        default=50, ge=1, description="Subscribers needed to lift a channel by one star"
    )
    reputation_bonus: float = Field(
        default=5.0,
        ge=0.0,
        description="Stars granted to a professor on each first-time subscription",
    )

    # Channels
    channel_price: int = Field(default=50, ge=0, description="Fixed channel subscription price")

    # Rating sweep
    recompute_interval_seconds: int = Field(
        default=30 * 24 * 60 * 60, ge=1, description="Monthly cadence by default"
    )
    recompute_on_startup: bool = True

    # Consistency
    verify_invariants: bool = Field(
        default=True, description="Check subscription invariants after every mutation"
    )

    # Demo data
    seed_demo_data: bool = False
    default_language: Literal["ar", "fr"] = "ar"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()


# Convenience exports
settings = get_settings()
