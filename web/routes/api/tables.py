"""Coupon and conversion tables with their filter dropdowns."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from trackr.envelope import Envelope
from trackr.models import Profile
from trackr.services import DashboardService
from web.schemas import EnvelopeResponse, FilterValuesResponse
from ._deps import (
    limiter, READ_LIMIT,
    get_dashboard_service, get_profile,
    resolve_date_range, authorize,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _table_response(result: Envelope) -> dict:
    """Rejected paging or sorting input is a client error, not an empty table."""
    if result.invalid:
        raise HTTPException(status_code=400, detail=result.error)
    return result.to_dict()


# ─── Coupons ──────────────────────────────────────────────────────────────────

@router.get("/brands/{brand_id}/coupons", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_coupons(
    request: Request,
    brand_id: str,
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("code"),
    sort_direction: str = Query("asc"),
    coupon_code: Optional[str] = Query(None, description="Exact coupon code"),
    influencer_name: Optional[str] = Query(None, description="Exact influencer name"),
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Coupons with usage count, sales and last usage inside the range."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_coupons_with_metrics(
        brand_id,
        date_range,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_direction=sort_direction,
        coupon_code=coupon_code,
        influencer_name=influencer_name,
    )
    return _table_response(result)


@router.get("/brands/{brand_id}/coupons/filters", response_model=FilterValuesResponse)
@limiter.limit(READ_LIMIT)
async def get_coupon_filters(
    request: Request,
    brand_id: str,
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Coupon codes, influencer names and classification names used in range."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_coupon_filter_values(brand_id, date_range)
    return result.to_dict()


# ─── Conversions ──────────────────────────────────────────────────────────────

@router.get("/brands/{brand_id}/conversions", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_conversions(
    request: Request,
    brand_id: str,
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("sale_date"),
    sort_direction: str = Query("desc"),
    status: Optional[str] = Query(None, description="Exact status"),
    order_id: Optional[str] = Query(None, description="Order id or order number"),
    coupon_code: Optional[str] = Query(None),
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Real orders in range, newest first by default."""
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_conversions(
        brand_id,
        date_range,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_direction=sort_direction,
        status=status,
        order_id=order_id,
        coupon_code=coupon_code,
    )
    return _table_response(result)


@router.get("/brands/{brand_id}/conversions/filters", response_model=FilterValuesResponse)
@limiter.limit(READ_LIMIT)
async def get_conversion_filters(
    request: Request,
    brand_id: str,
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    profile: Profile = Depends(get_profile),
    service: DashboardService = Depends(get_dashboard_service),
):
    date_range = resolve_date_range(period, start_date, end_date)
    await authorize(service, profile, brand_id)
    result = await service.get_conversion_filter_values(brand_id, date_range)
    return result.to_dict()
