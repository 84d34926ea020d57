"""
Pydantic request/response models for API endpoints.

Request bodies are shape-checked here; business rules (color format,
discount bounds, code normalization) stay in trackr.validators so the
service layer enforces them for every caller.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# COMMON MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class BrandResponse(BaseModel):
    """Brand data."""
    id: str
    name: str
    ownerId: Optional[str] = None
    externalStoreId: Optional[str] = None
    isReal: bool = True


class EnvelopeResponse(BaseModel):
    """Result envelope: data is the zero value whenever error is set."""
    data: Any = None
    error: Optional[str] = None


class BrandListResponse(BaseModel):
    """Brands the caller may open."""
    data: List[BrandResponse]
    error: Optional[str] = None


class InfluencerResponse(BaseModel):
    """Influencer data."""
    id: str
    brandId: str
    name: str
    socialHandle: Optional[str] = None
    commissionRate: float = 0
    createdAt: Optional[str] = None


class InfluencerListResponse(BaseModel):
    """Influencers of one brand."""
    data: List[InfluencerResponse]
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class StoreStatus(BaseModel):
    """Record store status."""
    status: str
    latency_ms: Optional[float] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    store: StoreStatus


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFICATIONS
# ═══════════════════════════════════════════════════════════════════════════════

class CreateClassificationRequest(BaseModel):
    """New coupon classification."""
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, description="Hex color (#rrggbb)")


class UpdateClassificationRequest(BaseModel):
    """Partial classification update; omitted fields are kept."""
    name: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = None


class AssignClassificationRequest(BaseModel):
    """Classification to attach to a coupon."""
    classification_id: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# COUPONS & CONVERSIONS
# ═══════════════════════════════════════════════════════════════════════════════

class CreateCouponRequest(BaseModel):
    """New coupon code."""
    code: str
    influencer_id: Optional[str] = None
    discount_value: float = Field(0, ge=0)
    discount_type: str = Field("percentage", description="percentage or absolute")
    is_active: bool = True


class LogConversionRequest(BaseModel):
    """Completed order to record."""
    order_id: str
    order_amount: float = Field(..., ge=0)
    commission_amount: float = Field(0, ge=0)
    coupon_id: Optional[str] = Field(None, description="Takes precedence over coupon_code")
    coupon_code: Optional[str] = None
    sale_date: Optional[datetime] = None
    order_number: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class OverviewResponse(BaseModel):
    """All dashboard overview widgets; each carries its own error."""
    metrics: EnvelopeResponse
    dailyRevenue: EnvelopeResponse
    topCoupons: EnvelopeResponse
    topClassifications: EnvelopeResponse
    pendingOrders: EnvelopeResponse


class FilterValuesResponse(BaseModel):
    """Distinct values for dropdown filters."""
    data: Dict[str, List[str]]
    error: Optional[str] = None
