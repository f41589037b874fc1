"""
Application configuration management using Pydantic settings.

Every section reads its own environment prefix; the top-level settings also
read an optional .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from product_matching import __version__
from product_matching.matching.taxonomy_matcher import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SUB_CATEGORY,
)

logger = structlog.get_logger(__name__)


class MatchingSettings(BaseSettings):
    """Fuzzy matching configuration"""

    match_threshold: float = Field(
        DEFAULT_MATCH_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum similarity for a taxonomy candidate to be accepted",
    )
    default_sub_category: str = Field(
        DEFAULT_SUB_CATEGORY, description="Sub-category used for empty or generic tracks"
    )

    model_config = SettingsConfigDict(env_prefix="MATCHING_", extra="ignore")


class TaxonomySettings(BaseSettings):
    """Where the reference taxonomy is loaded from"""

    database_url: Optional[str] = Field(
        None, description="SQLAlchemy URL of the taxonomy store"
    )
    source_file: Optional[Path] = Field(
        None, description="JSON or CSV export of the taxonomy table"
    )

    @field_validator("source_file")
    @classmethod
    def validate_source_file(cls, v):
        """Only JSON and CSV exports are supported"""
        if v is not None and v.suffix.lower() not in (".json", ".csv"):
            raise ValueError("Taxonomy source file must be .json or .csv")
        return v

    def is_configured(self) -> bool:
        """Check whether any taxonomy source is configured"""
        return bool(self.database_url or self.source_file)

    model_config = SettingsConfigDict(env_prefix="TAXONOMY_", extra="ignore")


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    log_level: str = Field("INFO")
    log_format: str = Field("text")  # json, text

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format"""
        if v not in ["json", "text"]:
            raise ValueError('Log format must be "json" or "text"')
        return v

    model_config = SettingsConfigDict(env_prefix="MONITORING_", extra="ignore")


class ApplicationSettings(BaseSettings):
    """Main application configuration"""

    app_name: str = Field("Product Taxonomy Matching")
    app_version: str = Field(__version__)
    environment: str = Field("development")
    debug_mode: bool = Field(False)

    # Component settings
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    taxonomy: TaxonomySettings = Field(default_factory=TaxonomySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment name"""
        valid_environments = ["development", "staging", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}")
        return v

    @field_validator("debug_mode")
    @classmethod
    def validate_debug_mode(cls, v, info):
        """Ensure debug mode is disabled in production"""
        environment = info.data.get("environment", "development")
        if environment == "production" and v:
            raise ValueError("Debug mode must be disabled in production")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> ApplicationSettings:
    """
    Get application settings with caching.
    Uses LRU cache to avoid re-reading environment on every call.
    """
    return ApplicationSettings()


def validate_settings() -> ApplicationSettings:
    """
    Validate all settings and raise helpful errors.
    Call this at startup to fail fast on configuration errors.
    """
    settings = get_settings()

    source_file = settings.taxonomy.source_file
    if source_file is not None and not source_file.exists():
        raise ValueError(f"Taxonomy source file not found: {source_file}")

    if settings.is_production() and not settings.taxonomy.is_configured():
        raise ValueError("A taxonomy source is required in production")

    logger.info("Settings validated", environment=settings.environment)
    return settings


def get_environment_info() -> dict:
    """Get current environment information for debugging"""
    settings = get_settings()

    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug_mode": settings.debug_mode,
        "match_threshold": settings.matching.match_threshold,
        "default_sub_category": settings.matching.default_sub_category,
        "taxonomy_database_configured": bool(settings.taxonomy.database_url),
        "taxonomy_source_file": str(settings.taxonomy.source_file)
        if settings.taxonomy.source_file
        else None,
        "log_level": settings.monitoring.log_level,
        "log_format": settings.monitoring.log_format,
    }


__all__ = [
    "ApplicationSettings",
    "MatchingSettings",
    "TaxonomySettings",
    "MonitoringSettings",
    "get_settings",
    "validate_settings",
    "get_environment_info",
]
