"""
Dashboard service: brand-scoped reporting entry points.

Each public method issues its reads against the injected record store,
hands the rows to the pure aggregation functions and returns an Envelope.
Failures never escape: the caller gets the zero value plus a display
message. Widgets fetch independently, so one failing read only blanks its
own widget.
"""
import asyncio
from typing import Any, Dict, List, Optional

from trackr.aggregation import (
    brand_summary,
    daily_revenue_series,
    empty_brand_summary,
    empty_pending_rollup,
    pending_orders_rollup,
    top_classifications,
    top_coupons,
)
from trackr.classifier import (
    PENDING_STATUSES,
    REVENUE_STATUSES_COUPON_USAGE,
    REVENUE_STATUSES_DAILY,
    REVENUE_STATUSES_SUMMARY,
    REVENUE_STATUSES_TOPLISTS,
)
from trackr.config import ReportConfig, config
from trackr.conversions import CONVERSION_SORT_COLUMNS, list_conversions
from trackr.conversions import empty_conversion_page, page_to_dict as conversions_page_to_dict
from trackr.coupon_metrics import COUPON_SORT_COLUMNS, list_coupons_with_metrics
from trackr.coupon_metrics import empty_coupon_page, page_to_dict as coupons_page_to_dict
from trackr.envelope import Envelope, enveloped
from trackr.exceptions import NotFoundError, StoreUnavailableError
from trackr.filter_values import (
    conversion_filter_values,
    coupon_filter_values,
    empty_conversion_filter_values,
    empty_coupon_filter_values,
)
from trackr.filters import DateRange
from trackr.models import Brand, Profile
from trackr.observability import get_logger, timed
from trackr.pagination import to_snake_case
from trackr.permissions import Action, Feature, require_brand_permission
from trackr.repositories.store import RecordStore
from trackr.validators import (
    validate_limit,
    validate_page,
    validate_sort_direction,
    validate_sort_field,
)

logger = get_logger(__name__)


class DashboardService:
    """Reporting operations for one record store."""

    def __init__(self, store: Optional[RecordStore], report_config: ReportConfig = None):
        self._store = store
        self.reports = report_config or config.reports

    @property
    def store(self) -> RecordStore:
        if self._store is None:
            raise StoreUnavailableError()
        return self._store

    # ─── Access ───────────────────────────────────────────────────────────────

    async def authorize(
        self,
        profile: Profile,
        brand_id: str,
        feature: str = Feature.DASHBOARD,
        action: str = Action.VIEW,
    ) -> Brand:
        """
        Resolve the brand and check the caller may act on it.

        Raises NotFoundError or PermissionDeniedError; this is the one entry
        point that does not return an envelope, since the HTTP layer maps
        these to status codes.
        """
        brand = await self.store.get_brand(brand_id)
        if brand is None:
            raise NotFoundError("Brand not found", brand_id)
        require_brand_permission(profile, brand, feature, action)
        return brand

    @enveloped(list)
    @timed("get_brands")
    async def get_brands(self, owner_id: str) -> List[Dict[str, Any]]:
        brands = await self.store.select_brands(owner_id=owner_id)
        return [b.to_dict() for b in brands]

    @enveloped(list)
    @timed("list_influencers")
    async def list_influencers(
        self, brand_id: str, date_range: Optional[DateRange] = None
    ) -> List[Dict[str, Any]]:
        """Influencers of a brand, newest first; date_range filters on creation."""
        influencers = await self.store.select_influencers(brand_id, date_range=date_range)
        return [i.to_dict() for i in influencers]

    # ─── Aggregates ───────────────────────────────────────────────────────────

    @enveloped(empty_brand_summary)
    @timed("get_brand_metrics")
    async def get_brand_metrics(
        self,
        brand_id: str,
        date_range: DateRange,
        count_existence_in_range: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Headline metrics; existence counts follow config unless overridden."""
        if count_existence_in_range is None:
            count_existence_in_range = self.reports.count_existence_in_range

        conversions, coupons, influencers = await asyncio.gather(
            self.store.select_conversions(
                brand_id, date_range=date_range,
                status=REVENUE_STATUSES_SUMMARY, order_is_real=True,
            ),
            self.store.select_coupons(brand_id),
            self.store.select_influencers(brand_id),
        )
        return {
            "brandId": brand_id,
            **brand_summary(
                conversions,
                coupons,
                influencers,
                existence_range=date_range if count_existence_in_range else None,
            ),
        }

    @enveloped(list)
    @timed("get_daily_revenue")
    async def get_daily_revenue(self, brand_id: str, date_range: DateRange) -> List[Dict[str, Any]]:
        conversions = await self.store.select_conversions(
            brand_id, date_range=date_range,
            status=REVENUE_STATUSES_DAILY, order_is_real=True,
        )
        return daily_revenue_series(conversions)

    @enveloped(list)
    @timed("get_top_coupons")
    async def get_top_coupons(self, brand_id: str, date_range: DateRange) -> List[Dict[str, Any]]:
        conversions = await self.store.select_conversions(
            brand_id, date_range=date_range,
            status=REVENUE_STATUSES_TOPLISTS, order_is_real=True,
        )
        return top_coupons(conversions, limit=self.reports.top_coupons_limit)

    @enveloped(list)
    @timed("get_top_classifications")
    async def get_top_classifications(self, brand_id: str, date_range: DateRange) -> List[Dict[str, Any]]:
        conversions, classifications = await asyncio.gather(
            self.store.select_conversions(
                brand_id, date_range=date_range,
                status=REVENUE_STATUSES_TOPLISTS, order_is_real=True,
            ),
            self.store.select_coupon_classifications(brand_id),
        )
        return top_classifications(
            conversions, classifications, limit=self.reports.top_classifications_limit
        )

    @enveloped(empty_pending_rollup)
    @timed("get_pending_orders")
    async def get_pending_orders(self, brand_id: str, date_range: DateRange) -> Dict[str, Any]:
        conversions = await self.store.select_conversions(
            brand_id, date_range=date_range,
            status=PENDING_STATUSES, order_is_real=True,
        )
        return pending_orders_rollup(conversions)

    # ─── Tables ───────────────────────────────────────────────────────────────

    @enveloped(empty_coupon_page)
    @timed("get_coupons_with_metrics")
    async def get_coupons_with_metrics(
        self,
        brand_id: str,
        date_range: DateRange,
        page: int = 1,
        limit: int = None,
        sort_by: str = "code",
        sort_direction: str = "asc",
        coupon_code: Optional[str] = None,
        influencer_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await list_coupons_with_metrics(
            self.store,
            brand_id,
            date_range,
            page=validate_page(page),
            limit=validate_limit(limit or self.reports.default_page_size),
            sort_by=validate_sort_field(to_snake_case(sort_by), COUPON_SORT_COLUMNS),
            sort_direction=validate_sort_direction(sort_direction),
            coupon_code=coupon_code or None,
            influencer_name=influencer_name or None,
        )
        return coupons_page_to_dict(result)

    @enveloped(empty_conversion_page)
    @timed("get_conversions")
    async def get_conversions(
        self,
        brand_id: str,
        date_range: DateRange,
        page: int = 1,
        limit: int = None,
        sort_by: str = "sale_date",
        sort_direction: str = "desc",
        status: Optional[str] = None,
        only_real: bool = True,
        order_id: Optional[str] = None,
        coupon_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await list_conversions(
            self.store,
            brand_id,
            date_range,
            page=validate_page(page),
            limit=validate_limit(limit or self.reports.default_page_size),
            sort_by=validate_sort_field(to_snake_case(sort_by), CONVERSION_SORT_COLUMNS),
            sort_direction=validate_sort_direction(sort_direction),
            status=status or None,
            only_real=only_real,
            order_id=order_id or None,
            coupon_code=coupon_code or None,
        )
        return conversions_page_to_dict(result)

    # ─── Filter dropdowns ─────────────────────────────────────────────────────

    @enveloped(empty_coupon_filter_values)
    @timed("get_coupon_filter_values")
    async def get_coupon_filter_values(self, brand_id: str, date_range: DateRange) -> Dict[str, List[str]]:
        coupons, conversions, classifications = await asyncio.gather(
            self.store.select_coupons(brand_id),
            self.store.select_conversions(
                brand_id, date_range=date_range,
                status=REVENUE_STATUSES_COUPON_USAGE, order_is_real=True,
            ),
            self.store.select_coupon_classifications(brand_id, is_active=True),
        )
        return coupon_filter_values(coupons, conversions, classifications)

    @enveloped(empty_conversion_filter_values)
    @timed("get_conversion_filter_values")
    async def get_conversion_filter_values(self, brand_id: str, date_range: DateRange) -> Dict[str, List[str]]:
        conversions = await self.store.select_conversions(
            brand_id, date_range=date_range, order_is_real=True,
        )
        return conversion_filter_values(conversions)

    async def load_overview(self, brand_id: str, date_range: DateRange) -> Dict[str, Envelope]:
        """All overview widgets, fetched concurrently and failing independently."""
        metrics, daily, coupons, classifications, pending = await asyncio.gather(
            self.get_brand_metrics(brand_id, date_range),
            self.get_daily_revenue(brand_id, date_range),
            self.get_top_coupons(brand_id, date_range),
            self.get_top_classifications(brand_id, date_range),
            self.get_pending_orders(brand_id, date_range),
        )
        return {
            "metrics": metrics,
            "dailyRevenue": daily,
            "topCoupons": coupons,
            "topClassifications": classifications,
            "pendingOrders": pending,
        }
