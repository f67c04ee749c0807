"""
Centralized configuration management.

All application configuration is loaded and validated here.
"""
import os
import logging
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Application settings with validation."""

    # Request payload limits
    max_dataset_rows: int = Field(default=100000, ge=100, le=1000000, description="Maximum rows accepted per request")

    # Analysis
    sample_size: int = Field(default=100, ge=10, le=10000, description="Non-empty values sampled per column")
    max_recommendations: int = Field(default=8, ge=1, le=50, description="Recommendations returned per analysis")
    cache_ttl_seconds: int = Field(default=600, ge=1, le=86400, description="Lifetime of cached analyses")

    # Rate limiting
    rate_limit_per_minute: int = Field(default=60, ge=1, le=10000, description="Rate limit per minute per IP")

    # Request timeout
    request_timeout_seconds: int = Field(default=30, ge=1, le=3600, description="Request timeout in seconds")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            max_dataset_rows=int(os.getenv("MAX_DATASET_ROWS", "100000")),
            sample_size=int(os.getenv("SAMPLE_SIZE", "100")),
            max_recommendations=int(os.getenv("MAX_RECOMMENDATIONS", "8")),
            cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "600")),
            rate_limit_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "60")),
            request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
