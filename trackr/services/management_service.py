"""
Management service: classification CRUD and the single-row coupon writes.

Every operation validates its input before touching the store, so a
rejected request leaves nothing half-written. Single-row reads and writes
fail with an empty dict as data, like every other envelope.
"""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from trackr.envelope import enveloped
from trackr.exceptions import NotFoundError, StoreUnavailableError
from trackr.models import ConversionStatus, CouponClassification, DiscountType
from trackr.observability import get_logger, timed
from trackr.repositories.store import RecordStore
from trackr.validators import (
    validate_classification_name,
    validate_color,
    validate_coupon_code,
    validate_amount,
    validate_discount,
    validate_required,
)

logger = get_logger(__name__)


class ManagementService:
    """Write-side operations of the brand dashboard."""

    def __init__(self, store: Optional[RecordStore]):
        self._store = store

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            raise StoreUnavailableError()
        return self._store

    # ─── Classifications ──────────────────────────────────────────────────────

    @enveloped(list)
    @timed("list_classifications")
    async def list_classifications(self, brand_id: str) -> List[Dict[str, Any]]:
        """Active classifications of a brand, ordered by name."""
        rows = await self.store.select_coupon_classifications(brand_id, is_active=True)
        return [c.to_dict() for c in rows]

    @enveloped(dict)
    @timed("get_classification")
    async def get_classification(self, classification_id: str, brand_id: Optional[str] = None) -> Dict[str, Any]:
        """Direct lookup; soft-deleted classifications are returned too."""
        found = await self.store.get_coupon_classification(classification_id)
        if found is None or (brand_id and found.brand_id != brand_id):
            raise NotFoundError("Classification not found", classification_id)
        return found.to_dict()

    @enveloped(dict)
    @timed("create_classification")
    async def create_classification(
        self,
        brand_id: str,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Dict[str, Any]:
        classification = CouponClassification(
            id=str(uuid.uuid4()),
            brand_id=brand_id,
            name=validate_classification_name(name),
            description=(description or "").strip() or None,
            color=validate_color(color),
            is_active=True,
        )
        saved = await self.store.upsert_coupon_classification(classification)
        return saved.to_dict()

    @enveloped(dict)
    @timed("update_classification")
    async def update_classification(
        self,
        classification_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        brand_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Update name, description and color; omitted fields keep their value."""
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = validate_classification_name(name)
        if description is not None:
            changes["description"] = description.strip() or None
        if color is not None:
            changes["color"] = validate_color(color)

        existing = await self.store.get_coupon_classification(classification_id)
        if existing is None or (brand_id and existing.brand_id != brand_id):
            raise NotFoundError("Classification not found", classification_id)

        saved = await self.store.upsert_coupon_classification(replace(existing, **changes))
        return saved.to_dict()

    @enveloped(lambda: False)
    @timed("delete_classification")
    async def delete_classification(self, classification_id: str, brand_id: Optional[str] = None) -> bool:
        """Soft delete. Coupons keep pointing at the inactive row."""
        existing = await self.store.get_coupon_classification(classification_id)
        if existing is None or (brand_id and existing.brand_id != brand_id):
            raise NotFoundError("Classification not found", classification_id)
        if not await self.store.soft_delete_coupon_classification(classification_id):
            raise NotFoundError("Classification not found", classification_id)
        return True

    @enveloped(dict)
    @timed("assign_classification")
    async def assign_classification(
        self,
        coupon_id: str,
        classification_id: Optional[str],
        brand_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Attach an active classification of the coupon's own brand."""
        classification_id = validate_required(
            classification_id, "classification_id", "Selecione uma classificação"
        )

        coupon = await self.store.get_coupon(coupon_id)
        if coupon is None or (brand_id and coupon.brand_id != brand_id):
            raise NotFoundError("Coupon not found", coupon_id)

        classification = await self.store.get_coupon_classification(classification_id)
        if (
            classification is None
            or not classification.is_active
            or classification.brand_id != coupon.brand_id
        ):
            raise NotFoundError("Classification not found", classification_id)

        updated = await self.store.assign_coupon_classification(coupon_id, classification_id)
        if updated is None:
            raise NotFoundError("Coupon not found", coupon_id)
        logger.info(f"Coupon {coupon.code} classified as {classification.name}")
        return updated.to_dict()

    # ─── Coupons and conversions ──────────────────────────────────────────────

    @enveloped(dict)
    @timed("create_coupon")
    async def create_coupon(
        self,
        brand_id: str,
        code: str,
        influencer_id: Optional[str] = None,
        discount_value: Any = 0,
        discount_type: str = DiscountType.PERCENTAGE.value,
        is_active: bool = True,
    ) -> Dict[str, Any]:
        code = validate_coupon_code(code)
        amount = validate_discount(discount_value, discount_type)
        coupon = await self.store.create_coupon(
            brand_id,
            code,
            influencer_id=influencer_id,
            discount_value=amount,
            discount_type=DiscountType(discount_type).value,
            is_active=is_active,
        )
        return coupon.to_dict()

    @enveloped(dict)
    @timed("log_conversion")
    async def log_conversion(
        self,
        brand_id: str,
        order_id: str,
        order_amount: Any,
        coupon_code: Optional[str] = None,
        commission_amount: Any = 0,
        sale_date: Optional[datetime] = None,
        order_number: Optional[str] = None,
        customer_email: Optional[str] = None,
        coupon_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Record a completed, real order.

        The order may be attributed by coupon_id or by coupon_code. Codes are
        matched exactly as stored, since imported codes keep their casing.
        """
        order_id = validate_required(order_id, "order_id", "Pedido é obrigatório")
        amount = validate_amount(order_amount)
        commission = validate_amount(commission_amount, field="commission_amount")

        if coupon_id:
            coupon = await self.store.get_coupon(coupon_id)
            if coupon is None or coupon.brand_id != brand_id:
                raise NotFoundError("Coupon not found", coupon_id)
        elif coupon_code and coupon_code.strip():
            matches = await self.store.select_coupons(brand_id, code=coupon_code.strip())
            if not matches:
                raise NotFoundError("Coupon not found", coupon_code)
            coupon_id = matches[0].id
        else:
            coupon_id = None

        conversion = await self.store.log_conversion(
            brand_id,
            order_id,
            amount,
            commission_amount=commission,
            coupon_id=coupon_id,
            status=ConversionStatus.COMPLETED.value,
            order_is_real=True,
            sale_date=sale_date,
            order_number=order_number,
            customer_email=customer_email,
            metadata=metadata,
        )
        return conversion.to_dict()

