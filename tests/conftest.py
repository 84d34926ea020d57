"""
Pytest configuration and shared fixtures.
"""
import itertools
import pytest
import pytest_asyncio
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from trackr.filters import DateRange
from trackr.models import Brand, Conversion, Coupon, CouponClassification, Influencer
from trackr.repositories import DuckDBRecordStore

BRAND_TZ = timezone(timedelta(hours=-3))


def brand_dt(year: int, month: int, day: int, hour: int = 12, minute: int = 0, second: int = 0) -> datetime:
    """Timestamp on the brand clock (GMT-3)."""
    return datetime(year, month, day, hour, minute, second, tzinfo=BRAND_TZ)


@pytest.fixture
def january() -> DateRange:
    """The whole of January 2024."""
    return DateRange(date(2024, 1, 1), date(2024, 1, 31))


@pytest.fixture
def make_conversion():
    """Factory for Conversion rows; defaults to a real, paid 100.00 order."""
    counter = itertools.count(1)

    def _make(
        amount: Any = "100.00",
        status: str = "paid",
        real: bool = True,
        sale_date: Optional[datetime] = None,
        coupon_id: Optional[str] = None,
        coupon_code: Optional[str] = None,
        classification_id: Optional[str] = None,
        commission: Any = "0",
        order_id: Optional[str] = None,
        order_number: Optional[str] = None,
    ) -> Conversion:
        n = next(counter)
        return Conversion(
            id=f"conv-{n:03d}",
            brand_id="brand-1",
            order_id=order_id or str(1000 + n),
            order_number=order_number,
            order_amount=Decimal(str(amount)),
            commission_amount=Decimal(str(commission)),
            status=status,
            order_is_real=real,
            sale_date=sale_date or brand_dt(2024, 1, 15),
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            coupon_classification_id=classification_id,
        )

    return _make


@pytest.fixture
def make_coupon():
    """Factory for Coupon rows."""
    def _make(
        coupon_id: str,
        code: str,
        influencer_name: Optional[str] = None,
        classification: Optional[str] = None,
        is_active: bool = True,
        discount_value: Any = "10",
        created_at: Optional[datetime] = None,
    ) -> Coupon:
        return Coupon(
            id=coupon_id,
            brand_id="brand-1",
            code=code,
            influencer_id=f"inf-{coupon_id}" if influencer_name else None,
            influencer_name=influencer_name,
            discount_value=Decimal(str(discount_value)),
            is_active=is_active,
            classification=classification,
            created_at=created_at or brand_dt(2023, 12, 1),
        )

    return _make


class InMemoryStore:
    """
    RecordStore over plain lists, applying the same predicates as the
    DuckDB store. Used to test the composers without a database.
    """

    def __init__(
        self,
        conversions: List[Conversion] = (),
        coupons: List[Coupon] = (),
        classifications: List[CouponClassification] = (),
        influencers: List[Influencer] = (),
        brands: List[Brand] = (),
    ):
        self.conversions = list(conversions)
        self.coupons = list(coupons)
        self.classifications = list(classifications)
        self.influencers = list(influencers)
        self.brands = list(brands)
        self.calls: List[str] = []

    async def select_conversions(
        self,
        brand_id,
        date_range=None,
        status=None,
        order_is_real=None,
        coupon_id=None,
        coupon_ids=None,
    ):
        self.calls.append("select_conversions")
        statuses = None
        if status is not None:
            statuses = {status} if isinstance(status, str) else set(status)
        rows = []
        for conv in self.conversions:
            if conv.brand_id != brand_id:
                continue
            if date_range is not None and not date_range.contains(conv.sale_date):
                continue
            if statuses is not None and conv.status not in statuses:
                continue
            if order_is_real is not None and conv.order_is_real != order_is_real:
                continue
            if coupon_id is not None and conv.coupon_id != coupon_id:
                continue
            if coupon_ids is not None and conv.coupon_id not in set(coupon_ids):
                continue
            rows.append(conv)
        return rows

    async def select_coupons(self, brand_id, code=None, is_active=None, date_range=None):
        self.calls.append("select_coupons")
        return [
            c for c in self.coupons
            if c.brand_id == brand_id
            and (code is None or c.code == code)
            and (is_active is None or c.is_active == is_active)
            and (date_range is None or date_range.contains(c.created_at))
        ]

    async def select_coupon_classifications(self, brand_id, is_active=None):
        self.calls.append("select_coupon_classifications")
        rows = [
            c for c in self.classifications
            if c.brand_id == brand_id and (is_active is None or c.is_active == is_active)
        ]
        return sorted(rows, key=lambda c: (c.name.lower(), c.id))

    async def select_influencers(self, brand_id, date_range=None):
        return [
            i for i in self.influencers
            if i.brand_id == brand_id
            and (date_range is None or date_range.contains(i.created_at))
        ]

    async def select_brands(self, owner_id=None):
        return [b for b in self.brands if owner_id is None or b.owner_id == owner_id]

    async def get_brand(self, brand_id):
        return next((b for b in self.brands if b.id == brand_id), None)


@pytest.fixture
def in_memory_store():
    """Factory for InMemoryStore."""
    return InMemoryStore


@pytest_asyncio.fixture
async def duckdb_store():
    """Empty DuckDB record store in memory."""
    store = DuckDBRecordStore(":memory:")
    await store.connect()
    yield store
    await store.close()


async def seed_brand(store: DuckDBRecordStore) -> Dict[str, Any]:
    """
    One brand owned by "owner-1" with two influencers, three coupons and a
    handful of January 2024 conversions.
    """
    brand = await store.create_brand("Acme Cosméticos", owner_id="owner-1", brand_id="brand-1")
    ana = await store.create_influencer(brand.id, "Ana", "@ana", "0.10", created_at=brand_dt(2023, 11, 1))
    bia = await store.create_influencer(brand.id, "Bia", "@bia", "0.15", created_at=brand_dt(2024, 1, 10))

    save10 = await store.create_coupon(brand.id, "SAVE10", influencer_id=ana.id, discount_value="10",
                                       created_at=brand_dt(2023, 11, 2))
    bia15 = await store.create_coupon(brand.id, "BIA15", influencer_id=bia.id, discount_value="15",
                                      created_at=brand_dt(2024, 1, 10))
    idle = await store.create_coupon(brand.id, "IDLE", discount_value="5", is_active=False,
                                     created_at=brand_dt(2023, 6, 1))

    await store.log_conversion(brand.id, "1", "40.005", commission_amount="4", coupon_id=save10.id,
                               status="paid", sale_date=brand_dt(2024, 1, 5))
    await store.log_conversion(brand.id, "2", "10.00", commission_amount="1", coupon_id=save10.id,
                               status="paid", sale_date=brand_dt(2024, 1, 6))
    await store.log_conversion(brand.id, "3", "50.00", coupon_id=bia15.id,
                               status="pending", sale_date=brand_dt(2024, 1, 7))
    await store.log_conversion(brand.id, "4", "30.00", coupon_id=bia15.id,
                               status="paid", order_is_real=False, sale_date=brand_dt(2024, 1, 8))
    await store.log_conversion(brand.id, "5", "25.00", coupon_id=bia15.id,
                               status="completed", sale_date=brand_dt(2024, 1, 31, 23, 59, 59))
    await store.log_conversion(brand.id, "6", "999.00", coupon_id=bia15.id,
                               status="paid", sale_date=brand_dt(2024, 2, 1, 0, 0, 0))

    return {
        "brand": brand,
        "influencers": {"ana": ana, "bia": bia},
        "coupons": {"SAVE10": save10, "BIA15": bia15, "IDLE": idle},
    }


@pytest_asyncio.fixture
async def seeded_store(duckdb_store):
    """DuckDB store with the seed_brand data set."""
    seeded = await seed_brand(duckdb_store)
    duckdb_store.seed = seeded
    yield duckdb_store
