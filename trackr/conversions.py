"""
Conversions table: a brand's orders in range, filtered, sorted and paged.
"""
from typing import Any, Dict, Iterable, List, Optional

from trackr.filters import DateRange
from trackr.models import Conversion
from trackr.pagination import Page, paginate, sort_rows, to_snake_case

CONVERSION_SORT_COLUMNS = {
    "order_id": (lambda c: c.order_id, "string"),
    "coupon_code": (lambda c: c.coupon_code, "string"),
    "order_amount": (lambda c: c.order_amount, "number"),
    "commission_amount": (lambda c: c.commission_amount, "number"),
    "status": (lambda c: c.status, "string"),
    "sale_date": (lambda c: c.sale_date, "date"),
}


def filter_conversions(
    conversions: Iterable[Conversion],
    order_id: Optional[str] = None,
    coupon_code: Optional[str] = None,
) -> List[Conversion]:
    """Equality filters that depend on the coupon join."""
    rows = list(conversions)
    if order_id:
        rows = [c for c in rows if str(c.order_id) == order_id or c.order_number == order_id]
    if coupon_code:
        rows = [c for c in rows if c.coupon_code == coupon_code]
    return rows


def sort_conversions(
    conversions: Iterable[Conversion],
    sort_by: str = "sale_date",
    sort_direction: str = "desc",
) -> List[Conversion]:
    get, kind = CONVERSION_SORT_COLUMNS[to_snake_case(sort_by)]
    return sort_rows(list(conversions), get, kind, sort_direction, tiebreak=lambda c: c.id)


async def list_conversions(
    store,
    brand_id: str,
    date_range: DateRange,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "sale_date",
    sort_direction: str = "desc",
    status: Optional[str] = None,
    only_real: bool = True,
    order_id: Optional[str] = None,
    coupon_code: Optional[str] = None,
) -> Page[Conversion]:
    rows = await store.select_conversions(
        brand_id,
        date_range=date_range,
        status=status,
        order_is_real=True if only_real else None,
    )
    rows = filter_conversions(rows, order_id=order_id, coupon_code=coupon_code)
    return paginate(sort_conversions(rows, sort_by, sort_direction), page, limit)


def empty_conversion_page() -> Dict[str, Any]:
    return {"conversions": [], "totalCount": 0}


def page_to_dict(result: Page[Conversion]) -> Dict[str, Any]:
    return {
        "conversions": [c.to_dict() for c in result.items],
        "totalCount": result.total_count,
    }
