"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).

The assessment engine itself never reads settings; routers and services
pass the relevant values in as plain arguments.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (pricing cache)
    db_path: str = Field(default="./data/opterra.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Pricing collaborator
    price_stale_after_days: int = Field(
        default=30, ge=1, description="Cached price quotes older than this are ignored"
    )
    pricing_lookup_url: str = Field(
        default="", description="AI pricing lookup endpoint used by the seeding job"
    )
    pricing_lookup_timeout_seconds: float = Field(
        default=20.0, gt=0, description="Per-model pricing lookup timeout"
    )

    # AI guidance collaborator
    guidance_api_url: str = Field(default="", description="AI guidance endpoint (empty = static only)")
    guidance_api_key: str = Field(default="", description="AI guidance API key")
    guidance_timeout_seconds: float = Field(
        default=8.0, gt=0, le=60, description="Guidance request timeout"
    )

    # Engine inputs supplied by the calling layer
    forecast_horizon_years: int = Field(
        default=10, ge=1, le=30, description="Repair-vs-replace projection horizon"
    )
    inflation_rate: float = Field(
        default=0.03, ge=0.0, le=0.25, description="Annual replacement cost inflation"
    )
    assessment_cache_size: int = Field(
        default=512, ge=0, description="Fingerprint memoization size for assessments"
    )

    # Development
    dev_mode: bool = Field(default=True, description="Development mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def guidance_enabled(self) -> bool:
        """Whether an AI guidance endpoint is configured."""
        return bool(self.guidance_api_url)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
