"""
Core library for TrackrCommerce.

This package contains the reporting engine used by the web/ package:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- filters: Brand-local date ranges
- aggregation: Revenue rollups over conversions
- services: Envelope-returning entry points
- config: Centralized configuration
"""

# Import in dependency order
from trackr.exceptions import (
    TrackrError,
    StoreError,
    StoreUnavailableError,
    StoreQueryError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    get_error_message,
)

from trackr.validators import (
    validate_date_string,
    validate_date_range,
    validate_limit,
    validate_page,
    validate_period,
)

from trackr.filters import DateRange, parse_period

from trackr.envelope import Envelope

from trackr.config import config

from trackr.repositories import DuckDBRecordStore, RecordStore

from trackr.services import DashboardService, ManagementService

__all__ = [
    # Exceptions
    "TrackrError",
    "StoreError",
    "StoreUnavailableError",
    "StoreQueryError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
    "get_error_message",
    # Validators
    "validate_date_string",
    "validate_date_range",
    "validate_limit",
    "validate_page",
    "validate_period",
    # Dates
    "DateRange",
    "parse_period",
    # Results
    "Envelope",
    # Config
    "config",
    # Store
    "DuckDBRecordStore",
    "RecordStore",
    # Services
    "DashboardService",
    "ManagementService",
]
