"""Shared dependencies for API route modules."""
import logging
import time
from typing import Optional

from fastapi import Header, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from trackr.config import config
from trackr.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
    get_error_message,
)
from trackr.filters import DateRange, parse_period
from trackr.models import Profile
from trackr.permissions import Action, Feature
from trackr.services import DashboardService, ManagementService
from trackr.validators import validate_date_range, validate_period

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

READ_LIMIT = f"{config.web.rate_limit_per_minute}/minute"
WRITE_LIMIT = f"{config.web.write_rate_limit_per_minute}/minute"

# Shared logger factory
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

# Track startup time for uptime calculation
START_TIME = time.time()


def get_store(request: Request):
    """Record store owned by the app; None when not configured."""
    return getattr(request.app.state, "store", None)


def get_dashboard_service(request: Request) -> DashboardService:
    return DashboardService(get_store(request))


def get_management_service(request: Request) -> ManagementService:
    return ManagementService(get_store(request))


async def get_profile(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Profile:
    """
    Caller identity as forwarded by the auth proxy.

    Authentication happens upstream; a request without identity headers is
    rejected outright.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Profile(id=x_user_id, role=(x_user_role or "user").strip().lower())


def resolve_date_range(
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> DateRange:
    """Period shortcut or explicit dates; raises 400 on bad input."""
    try:
        period = validate_period(period)
        if not period and (start_date or end_date):
            start, end = validate_date_range(start_date, end_date)
            return DateRange(start, end)
        return parse_period(period)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=get_error_message(e))


async def authorize(
    service: DashboardService,
    profile: Profile,
    brand_id: str,
    feature: str = Feature.DASHBOARD,
    action: str = Action.VIEW,
) -> None:
    """Map access failures onto HTTP status codes."""
    try:
        await service.authorize(profile, brand_id, feature, action)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=get_error_message(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=get_error_message(e))
    except StoreError as e:
        raise HTTPException(status_code=503, detail=get_error_message(e))
