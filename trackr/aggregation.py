"""
Revenue aggregation over in-memory conversion rows.

Every function here is pure: it receives rows already fetched for one brand
and one date range, applies its own accepted-status set, and returns
chart/table-ready dicts. Amounts are summed as Decimal and rounded once, on
the way out.
"""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Any

from trackr.classifier import (
    REVENUE_STATUSES_DAILY,
    REVENUE_STATUSES_SUMMARY,
    REVENUE_STATUSES_TOPLISTS,
    is_pending,
    qualifying,
)
from trackr.config import config
from trackr.filters import DateRange, brand_local_date
from trackr.models import (
    Conversion,
    Coupon,
    CouponClassification,
    Influencer,
    UNCLASSIFIED,
)
from trackr.money import ZERO, money_sum, round_money, to_decimal


def _group_by_day(conversions: Iterable[Conversion]) -> Dict[date, List[Conversion]]:
    days: Dict[date, List[Conversion]] = defaultdict(list)
    for conv in conversions:
        if conv.sale_date is None:
            continue
        days[brand_local_date(conv.sale_date)].append(conv)
    return days


def _daily_buckets(conversions: Iterable[Conversion]) -> List[Dict[str, Any]]:
    days = _group_by_day(conversions)
    return [
        {
            "date": day.isoformat(),
            "revenue": round_money(money_sum(c.order_amount for c in rows)),
            "orderCount": len(rows),
        }
        for day, rows in sorted(days.items())
    ]


def daily_revenue_series(conversions: Iterable[Conversion]) -> List[Dict[str, Any]]:
    """
    Revenue and order count per brand-local day, ascending.

    The series is sparse: only days with at least one qualifying
    conversion appear.
    """
    return _daily_buckets(qualifying(conversions, REVENUE_STATUSES_DAILY))


def top_coupons(
    conversions: Iterable[Conversion],
    limit: int = config.reports.top_coupons_limit,
) -> List[Dict[str, Any]]:
    """
    Coupons ranked by revenue, highest first.

    Conversions without a coupon are skipped. Ties are ordered by code.
    """
    revenue: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    orders: Dict[str, int] = defaultdict(int)

    for conv in qualifying(conversions, REVENUE_STATUSES_TOPLISTS):
        code = conv.coupon_code
        if not conv.coupon_id or not code or code == "N/A":
            continue
        revenue[code] += to_decimal(conv.order_amount)
        orders[code] += 1

    ranked = sorted(revenue.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return [
        {"code": code, "revenue": round_money(total), "orderCount": orders[code]}
        for code, total in ranked
    ]


def resolve_classification(
    classification_id: Optional[str],
    classifications: Dict[str, CouponClassification],
):
    """
    Classification a conversion reports under.

    Returns the active CouponClassification, or UNCLASSIFIED when the coupon
    has none, the id is unknown, or the classification was soft-deleted.
    """
    if not classification_id:
        return UNCLASSIFIED
    found = classifications.get(classification_id)
    if found is None or not found.is_active:
        return UNCLASSIFIED
    return found


def top_classifications(
    conversions: Iterable[Conversion],
    classifications: Iterable[CouponClassification],
    limit: int = config.reports.top_classifications_limit,
) -> List[Dict[str, Any]]:
    """Classifications ranked by revenue, highest first."""
    by_id = {c.id: c for c in classifications}
    # Keyed by classification id, or by the UNCLASSIFIED marker itself
    revenue = defaultdict(lambda: ZERO)
    orders = defaultdict(int)

    for conv in qualifying(conversions, REVENUE_STATUSES_TOPLISTS):
        bucket = resolve_classification(conv.coupon_classification_id, by_id)
        key = UNCLASSIFIED if bucket is UNCLASSIFIED else bucket.id
        revenue[key] += to_decimal(conv.order_amount)
        orders[key] += 1

    def _describe(key) -> Dict[str, Any]:
        if key is UNCLASSIFIED:
            return {
                "id": None,
                "name": config.reports.unclassified_label,
                "color": config.reports.unclassified_color,
            }
        found = by_id[key]
        return {"id": found.id, "name": found.name, "color": found.color}

    rows = [
        {**_describe(key), "revenue": total, "orderCount": orders[key]}
        for key, total in revenue.items()
    ]
    rows.sort(key=lambda row: (-row["revenue"], row["name"].lower(), row["id"] or ""))

    for row in rows:
        row["revenue"] = round_money(row["revenue"])
    return rows[:limit]


def pending_orders_rollup(conversions: Iterable[Conversion]) -> Dict[str, Any]:
    """Total, count and per-day breakdown of real pending orders."""
    pending = [c for c in conversions if is_pending(c)]
    return {
        "revenue": round_money(money_sum(c.order_amount for c in pending)),
        "count": len(pending),
        "daily": _daily_buckets(pending),
    }


def _created_in(date_range: Optional[DateRange], created_at) -> bool:
    if date_range is None:
        return True
    return date_range.contains(created_at)


def brand_summary(
    conversions: Iterable[Conversion],
    coupons: Iterable[Coupon],
    influencers: Iterable[Influencer],
    existence_range: Optional[DateRange] = None,
) -> Dict[str, Any]:
    """
    Headline metrics for one brand.

    Revenue figures only count qualifying conversions. Coupon and influencer
    counts are all-time unless existence_range is given, in which case only
    rows created inside it are counted.
    """
    confirmed = qualifying(conversions, REVENUE_STATUSES_SUMMARY)

    total_revenue = money_sum(c.order_amount for c in confirmed)
    total_commissions = money_sum(c.commission_amount for c in confirmed)
    commission_rate = (
        float(total_commissions / total_revenue) if total_revenue != ZERO else 0.0
    )

    coupons = [c for c in coupons if _created_in(existence_range, c.created_at)]
    influencers = [i for i in influencers if _created_in(existence_range, i.created_at)]

    return {
        "totalRevenue": round_money(total_revenue),
        "totalCommissions": round_money(total_commissions),
        "totalOrders": len(confirmed),
        "commissionRate": round(commission_rate, 4),
        "totalCoupons": len(coupons),
        "activeCoupons": sum(1 for c in coupons if c.is_active),
        "totalInfluencers": len(influencers),
        "influencersWithSales": len({c.coupon_id for c in confirmed if c.coupon_id}),
    }


def empty_brand_summary() -> Dict[str, Any]:
    """Zero-valued summary returned alongside an error."""
    return brand_summary([], [], [])


def empty_pending_rollup() -> Dict[str, Any]:
    return {"revenue": 0.0, "count": 0, "daily": []}
