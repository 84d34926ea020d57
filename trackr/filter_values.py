"""
Distinct values for the dashboard's filter dropdowns.

Only values that would return rows for the current date range are offered,
so a user cannot pick a filter that yields an empty table.
"""
from typing import Any, Dict, Iterable, List, Optional

from trackr.classifier import REVENUE_STATUSES_COUPON_USAGE, qualifying
from trackr.models import Conversion, Coupon, CouponClassification


def _distinct_sorted(values: Iterable[Optional[str]]) -> List[str]:
    return sorted({v for v in values if v})


def coupon_filter_values(
    coupons: Iterable[Coupon],
    conversions: Iterable[Conversion],
    classifications: Iterable[CouponClassification] = (),
) -> Dict[str, List[str]]:
    """
    Codes, influencer names and classification names of coupons used in range.

    `conversions` are the brand's conversions inside the range. Inactive
    classifications are never offered.
    """
    used_ids = {c.coupon_id for c in qualifying(conversions, REVENUE_STATUSES_COUPON_USAGE) if c.coupon_id}
    used = [c for c in coupons if c.id in used_ids]
    active = {c.id: c.name for c in classifications if c.is_active}

    return {
        "couponCodes": _distinct_sorted(c.code for c in used),
        "influencerNames": _distinct_sorted(c.influencer_name for c in used),
        "classificationNames": _distinct_sorted(active.get(c.classification) for c in used),
    }


def conversion_filter_values(conversions: Iterable[Conversion]) -> Dict[str, List[str]]:
    """Order ids, order numbers, coupon codes and statuses of real conversions."""
    real = [c for c in conversions if c.order_is_real is True]
    return {
        "orderIds": _distinct_sorted(str(c.order_id) for c in real if c.order_id is not None),
        "orderNumbers": _distinct_sorted(c.order_number for c in real),
        "couponCodes": _distinct_sorted(c.coupon_code for c in real if c.coupon_id),
        "statuses": _distinct_sorted(c.status for c in real),
    }


def empty_coupon_filter_values() -> Dict[str, List[Any]]:
    return {"couponCodes": [], "influencerNames": [], "classificationNames": []}


def empty_conversion_filter_values() -> Dict[str, List[Any]]:
    return {"orderIds": [], "orderNumbers": [], "couponCodes": [], "statuses": []}
