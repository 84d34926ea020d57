"""
Status/realness classification of conversions.

Each aggregate names the statuses it accepts as revenue. The sets are not
the same across call sites; they are kept apart on purpose so historical
totals do not shift. A conversion only ever qualifies when order_is_real is
true.
"""
from typing import FrozenSet, Iterable, List

from trackr.models import Conversion, ConversionStatus

S = ConversionStatus

# Brand summary metrics (headline revenue, commissions, order count)
REVENUE_STATUSES_SUMMARY: FrozenSet[str] = frozenset({
    S.PAID.value, S.CONFIRMED.value, S.COMPLETED.value, S.AUTHORIZED.value,
})

# Daily revenue chart; matches the headline so the series adds up to it
REVENUE_STATUSES_DAILY: FrozenSet[str] = REVENUE_STATUSES_SUMMARY

# Top coupons / top classifications
REVENUE_STATUSES_TOPLISTS: FrozenSet[str] = frozenset({
    S.AUTHORIZED.value, S.PAID.value,
})

# Coupon usage metrics and the coupon filter dropdowns
REVENUE_STATUSES_COUPON_USAGE: FrozenSet[str] = frozenset({
    S.PAID.value, S.CONFIRMED.value, S.COMPLETED.value,
})

# Pending-orders rollup
PENDING_STATUSES: FrozenSet[str] = frozenset({S.PENDING.value})


def _status_value(status) -> str:
    if isinstance(status, ConversionStatus):
        return status.value
    return (status or "").strip().lower()


def is_realized_revenue(conversion: Conversion, accepted: FrozenSet[str]) -> bool:
    """True iff the order is real and its status is in the accepted set."""
    return conversion.order_is_real is True and _status_value(conversion.status) in accepted


def is_pending(conversion: Conversion) -> bool:
    """True for real orders still awaiting payment."""
    return is_realized_revenue(conversion, PENDING_STATUSES)


def qualifying(conversions: Iterable[Conversion], accepted: FrozenSet[str]) -> List[Conversion]:
    """Conversions that count for the given accepted-status set."""
    return [c for c in conversions if is_realized_revenue(c, accepted)]
