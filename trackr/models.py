"""
Domain models for TrackrCommerce data.

Provides dataclasses for Brands, Influencers, Coupons, Classifications and
Conversions as projected from the record store. These models are the single
source of truth for data structures shared by the aggregation engine, the
services and the web API.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class ConversionStatus(str, Enum):
    """Order status as reported by the store webhook."""
    PENDING = "pending"
    PAID = "paid"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    AUTHORIZED = "authorized"
    VOIDED = "voided"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        """Display label used in the conversions table."""
        labels = {
            ConversionStatus.PENDING: "Pendente",
            ConversionStatus.PAID: "Pago",
            ConversionStatus.CONFIRMED: "Confirmado",
            ConversionStatus.COMPLETED: "Concluído",
            ConversionStatus.AUTHORIZED: "Autorizado",
            ConversionStatus.VOIDED: "Anulado",
            ConversionStatus.REFUNDED: "Reembolsado",
            ConversionStatus.CANCELLED: "Cancelado",
        }
        return labels[self]


class DiscountType(str, Enum):
    """How a coupon's discount value is applied."""
    PERCENTAGE = "percentage"
    ABSOLUTE = "absolute"


class _Unclassified:
    """Marker for conversions whose coupon has no active classification."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCLASSIFIED"

    def __bool__(self) -> bool:
        return False


UNCLASSIFIED = _Unclassified()


# ═══════════════════════════════════════════════════════════════════════════════
# DATACLASSES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Brand:
    """Tenant root; every query is scoped by brand."""
    id: str
    name: str
    owner_id: Optional[str] = None
    external_store_id: Optional[str] = None
    is_real: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ownerId": self.owner_id,
            "externalStoreId": self.external_store_id,
            "isReal": self.is_real,
        }


@dataclass
class Profile:
    """Authenticated dashboard user."""
    id: str
    role: str = "user"
    email: Optional[str] = None
    full_name: Optional[str] = None


@dataclass
class Influencer:
    """Influencer attached to one brand."""
    id: str
    brand_id: str
    name: str
    social_handle: Optional[str] = None
    commission_rate: Decimal = Decimal("0")
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "brandId": self.brand_id,
            "name": self.name,
            "socialHandle": self.social_handle,
            "commissionRate": float(self.commission_rate or 0),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class CouponClassification:
    """Brand-defined reporting category. Soft-deleted via is_active=False."""
    id: str
    brand_id: str
    name: str
    description: Optional[str] = None
    color: str = "#6366f1"
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "isActive": self.is_active,
        }


@dataclass
class Coupon:
    """Coupon code, optionally attributed to an influencer and a classification."""
    id: str
    brand_id: str
    code: str
    influencer_id: Optional[str] = None
    discount_value: Decimal = Decimal("0")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    is_active: bool = True
    classification: Optional[str] = None
    classification_updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    # Projections from the store join
    influencer_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "brandId": self.brand_id,
            "code": self.code,
            "influencerId": self.influencer_id,
            "influencerName": self.influencer_name,
            "discountValue": float(self.discount_value or 0),
            "discountType": getattr(self.discount_type, "value", self.discount_type),
            "isActive": self.is_active,
            "classification": self.classification,
            "classificationUpdatedAt": (
                self.classification_updated_at.isoformat() if self.classification_updated_at else None
            ),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class Conversion:
    """An order event, optionally attributed to a coupon."""
    id: str
    brand_id: str
    order_id: str
    order_amount: Decimal = Decimal("0")
    commission_amount: Decimal = Decimal("0")
    status: str = ConversionStatus.PENDING.value
    order_is_real: bool = True
    sale_date: Optional[datetime] = None
    order_number: Optional[str] = None
    coupon_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    # Projections from the store join
    coupon_code: Optional[str] = None
    coupon_classification_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "orderNumber": self.order_number,
            "couponId": self.coupon_id,
            "couponCode": self.coupon_code or "N/A",
            "orderAmount": float(self.order_amount or 0),
            "commissionAmount": float(self.commission_amount or 0),
            "status": self.status,
            "orderIsReal": self.order_is_real,
            "saleDate": self.sale_date.isoformat() if self.sale_date else None,
            "metadata": dict(self.metadata or {}),
        }


@dataclass
class CouponMetric:
    """A coupon row joined with its usage within a date range."""
    id: str
    code: str
    influencer_name: Optional[str]
    discount_value: float
    discount_type: str
    is_active: bool
    created_at: Optional[datetime]
    classification_id: Optional[str]
    classification_name: Optional[str]
    classification_color: Optional[str]
    usage_count: int
    total_sales: float
    last_usage: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "influencerName": self.influencer_name,
            "discountValue": self.discount_value,
            "discountType": self.discount_type,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "classificationId": self.classification_id,
            "classificationName": self.classification_name,
            "classificationColor": self.classification_color,
            "usageCount": self.usage_count,
            "totalSales": self.total_sales,
            "lastUsage": self.last_usage.isoformat() if self.last_usage else None,
        }
