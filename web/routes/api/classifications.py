"""Classification management and the coupon/conversion write endpoints."""
import logging

from fastapi import APIRouter, Depends, Request

from trackr.models import Profile
from trackr.permissions import Action, Feature
from trackr.services import DashboardService, ManagementService
from web.schemas import (
    AssignClassificationRequest,
    CreateClassificationRequest,
    CreateCouponRequest,
    EnvelopeResponse,
    LogConversionRequest,
    UpdateClassificationRequest,
)
from ._deps import (
    limiter, READ_LIMIT, WRITE_LIMIT,
    get_dashboard_service, get_management_service, get_profile,
    authorize,
)

router = APIRouter()
logger = logging.getLogger(__name__)


# ─── Classifications ──────────────────────────────────────────────────────────

@router.get("/brands/{brand_id}/classifications", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def list_classifications(
    request: Request,
    brand_id: str,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    """Active classifications, ordered by name."""
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.VIEW)
    result = await service.list_classifications(brand_id)
    return result.to_dict()


@router.get("/brands/{brand_id}/classifications/{classification_id}", response_model=EnvelopeResponse)
@limiter.limit(READ_LIMIT)
async def get_classification(
    request: Request,
    brand_id: str,
    classification_id: str,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.VIEW)
    result = await service.get_classification(classification_id, brand_id=brand_id)
    return result.to_dict()


@router.post("/brands/{brand_id}/classifications", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def create_classification(
    request: Request,
    brand_id: str,
    body: CreateClassificationRequest,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.EDIT)
    result = await service.create_classification(
        brand_id, body.name, description=body.description, color=body.color
    )
    return result.to_dict()


@router.put("/brands/{brand_id}/classifications/{classification_id}", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def update_classification(
    request: Request,
    brand_id: str,
    classification_id: str,
    body: UpdateClassificationRequest,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.EDIT)
    result = await service.update_classification(
        classification_id,
        name=body.name,
        description=body.description,
        color=body.color,
        brand_id=brand_id,
    )
    return result.to_dict()


@router.delete("/brands/{brand_id}/classifications/{classification_id}", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def delete_classification(
    request: Request,
    brand_id: str,
    classification_id: str,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    """Soft delete; coupons already tagged keep rendering it."""
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.DELETE)
    result = await service.delete_classification(classification_id, brand_id=brand_id)
    return result.to_dict()


@router.put("/brands/{brand_id}/coupons/{coupon_id}/classification", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def assign_classification(
    request: Request,
    brand_id: str,
    coupon_id: str,
    body: AssignClassificationRequest,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    await authorize(access, profile, brand_id, Feature.CLASSIFICATIONS, Action.EDIT)
    result = await service.assign_classification(
        coupon_id, body.classification_id, brand_id=brand_id
    )
    return result.to_dict()


# ─── Coupons & conversions ────────────────────────────────────────────────────

@router.post("/brands/{brand_id}/coupons", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def create_coupon(
    request: Request,
    brand_id: str,
    body: CreateCouponRequest,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    await authorize(access, profile, brand_id, Feature.COUPONS, Action.EDIT)
    result = await service.create_coupon(
        brand_id,
        body.code,
        influencer_id=body.influencer_id,
        discount_value=body.discount_value,
        discount_type=body.discount_type,
        is_active=body.is_active,
    )
    return result.to_dict()


@router.post("/brands/{brand_id}/conversions", response_model=EnvelopeResponse)
@limiter.limit(WRITE_LIMIT)
async def log_conversion(
    request: Request,
    brand_id: str,
    body: LogConversionRequest,
    profile: Profile = Depends(get_profile),
    access: DashboardService = Depends(get_dashboard_service),
    service: ManagementService = Depends(get_management_service),
):
    """Record a completed order against the brand."""
    await authorize(access, profile, brand_id, Feature.COUPONS, Action.EDIT)
    result = await service.log_conversion(
        brand_id,
        body.order_id,
        body.order_amount,
        coupon_code=body.coupon_code,
        commission_amount=body.commission_amount,
        sale_date=body.sale_date,
        order_number=body.order_number,
        customer_email=body.customer_email,
        coupon_id=body.coupon_id,
        metadata=body.metadata,
    )
    return result.to_dict()
