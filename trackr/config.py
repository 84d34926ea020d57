"""
Centralized configuration for TrackrCommerce.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from trackr.config import config

    db_path = config.store.db_path
    top_n = config.reports.top_coupons_limit
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from trackr.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class StoreConfig:
    """Record store (DuckDB) configuration."""

    db_path: str = field(
        default_factory=lambda: os.getenv("TRACKR_DB_PATH", "data/trackr.duckdb")
    )

    # Seconds before a running query is interrupted
    query_timeout: float = field(
        default_factory=lambda: float(os.getenv("TRACKR_QUERY_TIMEOUT", "30"))
    )


@dataclass(frozen=True)
class ReportConfig:
    """Aggregation and reporting configuration."""

    # Brand stores report in a fixed GMT-3 offset, no DST
    brand_utc_offset_hours: int = -3

    top_coupons_limit: int = 10
    top_classifications_limit: int = 5

    # Synthetic bucket for conversions without an active classification
    unclassified_label: str = "Sem classificação"
    unclassified_color: str = "#6366f1"

    max_range_days: int = 366
    default_page_size: int = 10
    max_page_size: int = 100

    # Restrict coupon/influencer existence counts to those created in range
    count_existence_in_range: bool = field(
        default_factory=lambda: _env_flag("TRACKR_COUNT_EXISTENCE_IN_RANGE")
    )


@dataclass(frozen=True)
class WebConfig:
    """Web API configuration."""

    host: str = field(default_factory=lambda: os.getenv("TRACKR_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("TRACKR_PORT", "8080")))

    # Rate limiting
    rate_limit_per_minute: int = 60
    write_rate_limit_per_minute: int = 20


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    store: StoreConfig = field(default_factory=StoreConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)
    web: WebConfig = field(default_factory=WebConfig)


# Global config instance
config = AppConfig()


def validate_config(app_config: AppConfig = None) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Raises:
        ConfigurationError: If required configuration is missing
    """
    app_config = app_config or config
    errors = []

    if not app_config.store.db_path:
        errors.append("TRACKR_DB_PATH is required but empty")

    if app_config.store.query_timeout <= 0:
        errors.append("TRACKR_QUERY_TIMEOUT must be positive")

    if not -12 <= app_config.reports.brand_utc_offset_hours <= 14:
        errors.append("brand_utc_offset_hours must be between -12 and 14")

    if app_config.reports.top_coupons_limit < 1 or app_config.reports.top_classifications_limit < 1:
        errors.append("Top-N limits must be positive")

    if app_config.reports.default_page_size > app_config.reports.max_page_size:
        errors.append("default_page_size cannot exceed max_page_size")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
