"""
Coupon table: coupon rows joined with their usage inside a date range.

Pipeline: fetch coupons -> filter by influencer -> fan out one conversion
read per coupon -> compose metrics -> sort -> paginate. Each step except the
fetches is a pure function.
"""
import asyncio
from typing import Any, Dict, Iterable, List, Optional

from trackr.classifier import REVENUE_STATUSES_COUPON_USAGE, qualifying
from trackr.filters import DateRange
from trackr.models import Conversion, Coupon, CouponClassification, CouponMetric
from trackr.money import money_sum, round_money
from trackr.pagination import Page, paginate, sort_rows, to_snake_case

# column -> (getter, kind)
COUPON_SORT_COLUMNS = {
    "code": (lambda m: m.code, "string"),
    "influencer_name": (lambda m: m.influencer_name, "string"),
    "classification_name": (lambda m: m.classification_name, "string"),
    "discount_value": (lambda m: m.discount_value, "number"),
    "usage_count": (lambda m: m.usage_count, "number"),
    "total_sales": (lambda m: m.total_sales, "number"),
    "last_usage": (lambda m: m.last_usage, "date"),
    "is_active": (lambda m: m.is_active, "number"),
    "created_at": (lambda m: m.created_at, "date"),
}


def filter_by_influencer(coupons: Iterable[Coupon], influencer_name: Optional[str]) -> List[Coupon]:
    """Keep coupons whose joined influencer name equals influencer_name."""
    if not influencer_name:
        return list(coupons)
    return [c for c in coupons if c.influencer_name == influencer_name]


def compose_coupon_metric(
    coupon: Coupon,
    conversions: Iterable[Conversion],
    classifications: Dict[str, CouponClassification],
) -> CouponMetric:
    """
    Usage metrics for one coupon.

    The classification is resolved by direct id lookup, so a soft-deleted
    classification still renders on the coupons it was assigned to.
    """
    used = [c for c in qualifying(conversions, REVENUE_STATUSES_COUPON_USAGE) if c.coupon_id == coupon.id]
    sale_dates = [c.sale_date for c in used if c.sale_date is not None]
    classification = classifications.get(coupon.classification) if coupon.classification else None

    return CouponMetric(
        id=coupon.id,
        code=coupon.code,
        influencer_name=coupon.influencer_name,
        discount_value=float(coupon.discount_value or 0),
        discount_type=getattr(coupon.discount_type, "value", coupon.discount_type),
        is_active=coupon.is_active,
        created_at=coupon.created_at,
        classification_id=coupon.classification,
        classification_name=classification.name if classification else None,
        classification_color=classification.color if classification else None,
        usage_count=len(used),
        total_sales=round_money(money_sum(c.order_amount for c in used)),
        last_usage=max(sale_dates) if sale_dates else None,
    )


def sort_coupon_metrics(
    metrics: Iterable[CouponMetric],
    sort_by: str = "code",
    sort_direction: str = "asc",
) -> List[CouponMetric]:
    """Sort by one column; nulls last, ties by code then id."""
    get, kind = COUPON_SORT_COLUMNS[to_snake_case(sort_by)]
    return sort_rows(
        list(metrics),
        get,
        kind,
        sort_direction,
        tiebreak=lambda m: (m.code.lower(), m.id),
    )


async def list_coupons_with_metrics(
    store,
    brand_id: str,
    date_range: DateRange,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "code",
    sort_direction: str = "asc",
    coupon_code: Optional[str] = None,
    influencer_name: Optional[str] = None,
) -> Page[CouponMetric]:
    """
    Compose the coupon table for one brand and date range.

    Any failed read aborts the whole composition; the caller turns that into
    an error envelope.
    """
    coupons, classifications = await asyncio.gather(
        store.select_coupons(brand_id, code=coupon_code),
        store.select_coupon_classifications(brand_id),
    )
    coupons = filter_by_influencer(coupons, influencer_name)
    by_id = {c.id: c for c in classifications}

    usage = await asyncio.gather(*[
        store.select_conversions(
            brand_id,
            date_range=date_range,
            status=REVENUE_STATUSES_COUPON_USAGE,
            order_is_real=True,
            coupon_id=coupon.id,
        )
        for coupon in coupons
    ])

    metrics = [
        compose_coupon_metric(coupon, conversions, by_id)
        for coupon, conversions in zip(coupons, usage)
    ]
    return paginate(sort_coupon_metrics(metrics, sort_by, sort_direction), page, limit)


def empty_coupon_page() -> Dict[str, Any]:
    return {"coupons": [], "totalCount": 0}


def page_to_dict(result: Page[CouponMetric]) -> Dict[str, Any]:
    return {
        "coupons": [m.to_dict() for m in result.items],
        "totalCount": result.total_count,
    }
