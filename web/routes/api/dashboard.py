"""Brand list and overview widgets: summary, daily revenue, top lists, pending orders."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from trackr.models import Profile
from trackr.permissions import Role
from trackr.services import DashboardService
from web.schemas import BrandListResponse, EnvelopeResponse, InfluencerListResponse, OverviewResponse
from ._deps import (
    limiter, READ_LIMIT,
    get_dashboard_service, get_profile,
    resolve_date_range, authorize,
)

router = APIRouter()
logger = logging.getLogger(__name__)

PERIOD_QUERY = Query(None, description="Shortcut: today, yesterday, week, last_week, month, last_month")
START_QUERY = Query(None, description="Start date (YYYY-MM-DD)")
END_QUERY = Query(None, description="End date (YYYY-MM-DD)")


# ─── Brands ───────────────────────────────────────────────────────────────────

@router.get("/brands", response_model=BrandListResponse)
@limiter.limit(READ_LIMIT)
async def get_brands(
    request: Request,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Brands the caller may open: all for master, owned ones for brand admins."""
    if profile.role == Role.MASTER.value:
        result = await service.get_brands(None)
    elif profile.role == Role.BRAND_ADMIN.value:
        result = await service.get_brands(profile.id)
    else:
        return {"data": [], "error": None}
    return result.to_dict()


@router.get("/brands/{brand_id}/influencers", response_model=InfluencerListResponse)
@limiter.limit(READ_LIMIT)
async def list_influencers(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Influencers of the brand; a period or dates restrict to those created in range."""
    date_range = None
    if period or start_date or end_date:
        date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.list_influencers(brand_id, date_range)
    return result.to_dict()


# ─── Overview ─────────────────────────────────────────────────────────────────

@router.get("/brands/{brand_id}/overview", response_model=OverviewResponse)
@limiter.limit(READ_LIMIT)
async def get_overview(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Every overview widget in one round trip; widgets fail independently."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    widgets = await service.load_overview(brand_id, date_range)
    return {name: envelope.to_dict() for name, envelope in widgets.items()}


@router.get("/brands/{brand_id}/metrics", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_brand_metrics(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    existence_in_range: Optional[bool] = Query(
        None, description="Count only coupons/influencers created in range"
    ),
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Headline revenue, commission, order and coupon counts."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_brand_metrics(brand_id, date_range, existence_in_range)
    return result.to_dict()


@router.get("/brands/{brand_id}/revenue/daily", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_daily_revenue(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Revenue per brand-local day for the line chart."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_daily_revenue(brand_id, date_range)
    return result.to_dict()


@router.get("/brands/{brand_id}/top-coupons", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_top_coupons(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_top_coupons(brand_id, date_range)
    return result.to_dict()


@router.get("/brands/{brand_id}/top-classifications", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_top_classifications(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_top_classifications(brand_id, date_range)
    return result.to_dict()


@router.get("/brands/{brand_id}/pending-orders", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_pending_orders(
    request: Request,
    brand_id: str,
    period: Optional[str] = PERIOD_QUERY,
    start_date: Optional[str] = START_QUERY,
    end_date: Optional[str] = END_QUERY,
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Pending revenue, count and per-day breakdown."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_pending_orders(brand_id, date_range)
    return result.to_dict()
