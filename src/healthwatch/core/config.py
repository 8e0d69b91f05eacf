"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTHWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="healthwatch", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="CORS allowed origins",
    )

    # Health monitoring
    check_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Default component check interval and staleness sweep period",
    )
    component_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Timeout applied to each component check"
    )
    staleness_multiplier: float = Field(
        default=3.0,
        gt=0,
        description="Check intervals without an update before a component is stale",
    )
    stream_queue_size: int = Field(
        default=100, ge=1, description="Per-observer buffer of the health stream"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Log output format"
    )

    @computed_field
    @property
    def staleness_threshold_seconds(self) -> float:
        """Silence after which a component is downgraded."""
        return self.check_interval_seconds * self.staleness_multiplier


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
