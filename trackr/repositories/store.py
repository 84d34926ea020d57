"""
Record store: brand-scoped reads and the handful of single-row writes.

RecordStore is the contract the services depend on; DuckDBRecordStore is
the concrete implementation. Reads return domain dataclasses with the join
projections (influencer name, coupon code, coupon classification) filled in.
"""
import json
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from trackr.exceptions import StoreQueryError
from trackr.filters import DateRange
from trackr.models import (
    Brand,
    Conversion,
    ConversionStatus,
    Coupon,
    CouponClassification,
    DiscountType,
    Influencer,
)
from trackr.observability import get_logger
from trackr.repositories.base import (
    BaseRepository,
    from_utc_naive,
    to_utc_naive,
    utcnow_naive,
)

logger = get_logger(__name__)


class RecordStore(Protocol):
    """Capabilities the reporting core needs from storage."""

    async def select_conversions(
        self,
        brand_id: str,
        date_range: Optional[DateRange] = None,
        status: Union[str, Iterable[str], None] = None,
        order_is_real: Optional[bool] = None,
        coupon_id: Optional[str] = None,
        coupon_ids: Optional[Iterable[str]] = None,
    ) -> List[Conversion]: ...

    async def select_coupons(
        self,
        brand_id: str,
        code: Optional[str] = None,
        is_active: Optional[bool] = None,
        date_range: Optional[DateRange] = None,
    ) -> List[Coupon]: ...

    async def get_coupon(self, coupon_id: str) -> Optional[Coupon]: ...

    async def select_coupon_classifications(
        self, brand_id: str, is_active: Optional[bool] = None
    ) -> List[CouponClassification]: ...

    async def get_coupon_classification(self, classification_id: str) -> Optional[CouponClassification]: ...

    async def select_influencers(
        self, brand_id: str, date_range: Optional[DateRange] = None
    ) -> List[Influencer]: ...

    async def select_brands(self, owner_id: Optional[str] = None) -> List[Brand]: ...

    async def get_brand(self, brand_id: str) -> Optional[Brand]: ...

    async def upsert_coupon_classification(self, classification: CouponClassification) -> CouponClassification: ...

    async def soft_delete_coupon_classification(self, classification_id: str) -> bool: ...

    async def assign_coupon_classification(self, coupon_id: str, classification_id: Optional[str]) -> Optional[Coupon]: ...

    async def create_coupon(self, brand_id: str, code: str, **kwargs) -> Coupon: ...

    async def log_conversion(self, brand_id: str, order_id: str, order_amount: Any, **kwargs) -> Conversion: ...


def _new_id() -> str:
    return str(uuid.uuid4())


def _decimal_param(value: Any) -> str:
    # Bound as text and cast in SQL so no float rounding sneaks in
    return str(Decimal(str(value if value not in (None, "") else 0)))


def _range_clause(column: str, date_range: Optional[DateRange], params: list) -> Optional[str]:
    if date_range is None:
        return None
    start, end = date_range.bounds()
    params.extend([to_utc_naive(start), to_utc_naive(end)])
    return f"{column} >= ? AND {column} < ?"


_CONVERSION_COLUMNS = """
    v.id, v.brand_id, v.order_id, v.order_number, v.coupon_id,
    v.order_amount, v.commission_amount, v.status, v.order_is_real,
    v.sale_date, v.customer_id, v.customer_email, v.metadata,
    c.code, c.classification
"""

_COUPON_COLUMNS = """
    c.id, c.brand_id, c.code, c.influencer_id, c.discount_value,
    c.discount_type, c.is_active, c.classification,
    c.classification_updated_at, c.created_at, i.name
"""

_CLASSIFICATION_COLUMNS = "id, brand_id, name, description, color, is_active"


def _conversion_from_row(row: tuple) -> Conversion:
    metadata = {}
    if row[12]:
        try:
            metadata = json.loads(row[12])
        except ValueError:
            logger.warning(f"Unreadable metadata on conversion {row[0]}")
    return Conversion(
        id=row[0],
        brand_id=row[1],
        order_id=row[2],
        order_number=row[3],
        coupon_id=row[4],
        order_amount=row[5] if row[5] is not None else Decimal("0"),
        commission_amount=row[6] if row[6] is not None else Decimal("0"),
        status=row[7],
        order_is_real=bool(row[8]),
        sale_date=from_utc_naive(row[9]),
        customer_id=row[10],
        customer_email=row[11],
        metadata=metadata,
        coupon_code=row[13],
        coupon_classification_id=row[14],
    )


def _coupon_from_row(row: tuple) -> Coupon:
    return Coupon(
        id=row[0],
        brand_id=row[1],
        code=row[2],
        influencer_id=row[3],
        discount_value=row[4] if row[4] is not None else Decimal("0"),
        discount_type=DiscountType(row[5] or DiscountType.PERCENTAGE.value),
        is_active=bool(row[6]),
        classification=row[7],
        classification_updated_at=from_utc_naive(row[8]),
        created_at=from_utc_naive(row[9]),
        influencer_name=row[10],
    )


def _classification_from_row(row: tuple) -> CouponClassification:
    return CouponClassification(
        id=row[0],
        brand_id=row[1],
        name=row[2],
        description=row[3],
        color=row[4] or "#6366f1",
        is_active=bool(row[5]),
    )


class DuckDBRecordStore(BaseRepository):
    """DuckDB-backed RecordStore."""

    # ─── Reads ────────────────────────────────────────────────────────────────

    async def select_conversions(
        self,
        brand_id: str,
        date_range: Optional[DateRange] = None,
        status: Union[str, Iterable[str], None] = None,
        order_is_real: Optional[bool] = None,
        coupon_id: Optional[str] = None,
        coupon_ids: Optional[Iterable[str]] = None,
    ) -> List[Conversion]:
        """Conversions of a brand, newest first."""
        params: list = [brand_id]
        where = ["v.brand_id = ?"]

        range_sql = _range_clause("v.sale_date", date_range, params)
        if range_sql:
            where.append(range_sql)

        if status is not None:
            statuses = [status] if isinstance(status, str) else sorted(status)
            if not statuses:
                return []
            where.append(f"v.status IN ({','.join('?' * len(statuses))})")
            params.extend(statuses)

        if order_is_real is not None:
            where.append("v.order_is_real = ?")
            params.append(order_is_real)

        if coupon_id is not None:
            where.append("v.coupon_id = ?")
            params.append(coupon_id)

        if coupon_ids is not None:
            ids = list(coupon_ids)
            if not ids:
                return []
            where.append(f"v.coupon_id IN ({','.join('?' * len(ids))})")
            params.extend(ids)

        sql = f"""
            SELECT {_CONVERSION_COLUMNS}
            FROM conversions v
            LEFT JOIN coupons c ON c.id = v.coupon_id
            WHERE {" AND ".join(where)}
            ORDER BY v.sale_date DESC NULLS LAST, v.id
        """
        rows = await self.fetchall(sql, params, relation="conversions")
        return [_conversion_from_row(row) for row in rows]

    async def select_coupons(
        self,
        brand_id: str,
        code: Optional[str] = None,
        is_active: Optional[bool] = None,
        date_range: Optional[DateRange] = None,
    ) -> List[Coupon]:
        """Coupons of a brand joined with their influencer, newest first."""
        params: list = [brand_id]
        where = ["c.brand_id = ?"]

        if code is not None:
            where.append("c.code = ?")
            params.append(code)

        if is_active is not None:
            where.append("c.is_active = ?")
            params.append(is_active)

        range_sql = _range_clause("c.created_at", date_range, params)
        if range_sql:
            where.append(range_sql)

        sql = f"""
            SELECT {_COUPON_COLUMNS}
            FROM coupons c
            LEFT JOIN influencers i ON i.id = c.influencer_id
            WHERE {" AND ".join(where)}
            ORDER BY c.created_at DESC NULLS LAST, c.code
        """
        rows = await self.fetchall(sql, params, relation="coupons")
        return [_coupon_from_row(row) for row in rows]

    async def get_coupon(self, coupon_id: str) -> Optional[Coupon]:
        row = await self.fetchone(
            f"""
            SELECT {_COUPON_COLUMNS}
            FROM coupons c
            LEFT JOIN influencers i ON i.id = c.influencer_id
            WHERE c.id = ?
            """,
            [coupon_id],
            relation="coupons",
        )
        return _coupon_from_row(row) if row else None

    async def select_coupon_classifications(
        self, brand_id: str, is_active: Optional[bool] = None
    ) -> List[CouponClassification]:
        """Classifications of a brand ordered by name; all states unless filtered."""
        params: list = [brand_id]
        sql = f"SELECT {_CLASSIFICATION_COLUMNS} FROM coupon_classifications WHERE brand_id = ?"
        if is_active is not None:
            sql += " AND is_active = ?"
            params.append(is_active)
        sql += " ORDER BY lower(name), id"
        rows = await self.fetchall(sql, params, relation="coupon_classifications")
        return [_classification_from_row(row) for row in rows]

    async def get_coupon_classification(self, classification_id: str) -> Optional[CouponClassification]:
        """Direct lookup by id, including soft-deleted classifications."""
        row = await self.fetchone(
            f"SELECT {_CLASSIFICATION_COLUMNS} FROM coupon_classifications WHERE id = ?",
            [classification_id],
            relation="coupon_classifications",
        )
        return _classification_from_row(row) if row else None

    async def select_influencers(
        self, brand_id: str, date_range: Optional[DateRange] = None
    ) -> List[Influencer]:
        params: list = [brand_id]
        where = ["brand_id = ?"]
        range_sql = _range_clause("created_at", date_range, params)
        if range_sql:
            where.append(range_sql)

        rows = await self.fetchall(
            f"""
            SELECT id, brand_id, name, social_handle, commission_rate, created_at
            FROM influencers
            WHERE {" AND ".join(where)}
            ORDER BY created_at DESC NULLS LAST, name
            """,
            params,
            relation="influencers",
        )
        return [
            Influencer(
                id=row[0],
                brand_id=row[1],
                name=row[2],
                social_handle=row[3],
                commission_rate=row[4] if row[4] is not None else Decimal("0"),
                created_at=from_utc_naive(row[5]),
            )
            for row in rows
        ]

    async def select_brands(self, owner_id: Optional[str] = None) -> List[Brand]:
        """Brands, optionally restricted to one owner."""
        params: list = []
        sql = "SELECT id, name, owner_id, external_store_id, is_real FROM brands"
        if owner_id is not None:
            sql += " WHERE owner_id = ?"
            params.append(owner_id)
        sql += " ORDER BY name, id"
        rows = await self.fetchall(sql, params, relation="brands")
        return [Brand(id=r[0], name=r[1], owner_id=r[2], external_store_id=r[3], is_real=bool(r[4])) for r in rows]

    async def get_brand(self, brand_id: str) -> Optional[Brand]:
        row = await self.fetchone(
            "SELECT id, name, owner_id, external_store_id, is_real FROM brands WHERE id = ?",
            [brand_id],
            relation="brands",
        )
        if not row:
            return None
        return Brand(id=row[0], name=row[1], owner_id=row[2], external_store_id=row[3], is_real=bool(row[4]))

    # ─── Writes ───────────────────────────────────────────────────────────────

    async def upsert_coupon_classification(self, classification: CouponClassification) -> CouponClassification:
        """Insert or update one classification row."""
        now = utcnow_naive()
        existing = await self.get_coupon_classification(classification.id)
        if existing is None:
            await self.execute(
                """
                INSERT INTO coupon_classifications
                    (id, brand_id, name, description, color, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [classification.id, classification.brand_id, classification.name,
                 classification.description, classification.color,
                 classification.is_active, now, now],
                relation="coupon_classifications",
            )
        else:
            await self.execute(
                """
                UPDATE coupon_classifications
                SET name = ?, description = ?, color = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                [classification.name, classification.description, classification.color,
                 classification.is_active, now, classification.id],
                relation="coupon_classifications",
            )
        logger.info(f"Classification saved: {classification.id} ({classification.name})")
        return await self.get_coupon_classification(classification.id)

    async def soft_delete_coupon_classification(self, classification_id: str) -> bool:
        """Mark a classification inactive. Returns False if it does not exist."""
        if await self.get_coupon_classification(classification_id) is None:
            return False
        await self.execute(
            "UPDATE coupon_classifications SET is_active = FALSE, updated_at = ? WHERE id = ?",
            [utcnow_naive(), classification_id],
            relation="coupon_classifications",
        )
        logger.info(f"Classification soft-deleted: {classification_id}")
        return True

    async def assign_coupon_classification(
        self, coupon_id: str, classification_id: Optional[str]
    ) -> Optional[Coupon]:
        """Set (or clear) a coupon's classification."""
        if await self.get_coupon(coupon_id) is None:
            return None
        await self.execute(
            "UPDATE coupons SET classification = ?, classification_updated_at = ? WHERE id = ?",
            [classification_id, utcnow_naive(), coupon_id],
            relation="coupons",
        )
        return await self.get_coupon(coupon_id)

    async def create_coupon(
        self,
        brand_id: str,
        code: str,
        influencer_id: Optional[str] = None,
        discount_value: Any = 0,
        discount_type: str = DiscountType.PERCENTAGE.value,
        is_active: bool = True,
        classification: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Coupon:
        """Insert a coupon; codes are unique per brand."""
        if await self.select_coupons(brand_id, code=code):
            raise StoreQueryError("Duplicate coupon code", code, relation="coupons")

        coupon_id = _new_id()
        await self.execute(
            """
            INSERT INTO coupons
                (id, brand_id, code, influencer_id, discount_value, discount_type,
                 is_active, classification, classification_updated_at, created_at)
            VALUES (?, ?, ?, ?, CAST(? AS DECIMAL(12, 2)), ?, ?, ?, ?, ?)
            """,
            [coupon_id, brand_id, code, influencer_id, _decimal_param(discount_value),
             DiscountType(discount_type).value, is_active, classification,
             utcnow_naive() if classification else None,
             to_utc_naive(created_at) if created_at else utcnow_naive()],
            relation="coupons",
        )
        logger.info(f"Coupon created: {code} for brand {brand_id}")
        return await self.get_coupon(coupon_id)

    async def log_conversion(
        self,
        brand_id: str,
        order_id: str,
        order_amount: Any,
        commission_amount: Any = 0,
        coupon_id: Optional[str] = None,
        status: str = ConversionStatus.COMPLETED.value,
        order_is_real: bool = True,
        sale_date: Optional[datetime] = None,
        order_number: Optional[str] = None,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Conversion:
        """Record one order event."""
        conversion_id = _new_id()
        await self.execute(
            """
            INSERT INTO conversions
                (id, brand_id, order_id, order_number, coupon_id, order_amount,
                 commission_amount, status, order_is_real, sale_date,
                 customer_id, customer_email, metadata)
            VALUES (?, ?, ?, ?, ?, CAST(? AS DECIMAL(18, 4)), CAST(? AS DECIMAL(18, 4)),
                    ?, ?, ?, ?, ?, ?)
            """,
            [conversion_id, brand_id, str(order_id), order_number, coupon_id,
             _decimal_param(order_amount), _decimal_param(commission_amount),
             status, order_is_real,
             to_utc_naive(sale_date) if sale_date else utcnow_naive(),
             customer_id, customer_email, json.dumps(metadata or {})],
            relation="conversions",
        )
        rows = await self.fetchall(
            f"""
            SELECT {_CONVERSION_COLUMNS}
            FROM conversions v
            LEFT JOIN coupons c ON c.id = v.coupon_id
            WHERE v.id = ?
            """,
            [conversion_id],
            relation="conversions",
        )
        return _conversion_from_row(rows[0])

    # ─── Seeding (import scripts / tests) ─────────────────────────────────────

    async def create_brand(
        self,
        name: str,
        owner_id: Optional[str] = None,
        external_store_id: Optional[str] = None,
        is_real: bool = True,
        brand_id: Optional[str] = None,
    ) -> Brand:
        brand_id = brand_id or _new_id()
        await self.execute(
            "INSERT INTO brands (id, name, owner_id, external_store_id, is_real, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            [brand_id, name, owner_id, external_store_id, is_real, utcnow_naive()],
            relation="brands",
        )
        return await self.get_brand(brand_id)

    async def create_influencer(
        self,
        brand_id: str,
        name: str,
        social_handle: Optional[str] = None,
        commission_rate: Any = 0,
        created_at: Optional[datetime] = None,
    ) -> Influencer:
        influencer_id = _new_id()
        await self.execute(
            """
            INSERT INTO influencers (id, brand_id, name, social_handle, commission_rate, created_at)
            VALUES (?, ?, ?, ?, CAST(? AS DECIMAL(6, 4)), ?)
            """,
            [influencer_id, brand_id, name, social_handle, _decimal_param(commission_rate),
             to_utc_naive(created_at) if created_at else utcnow_naive()],
            relation="influencers",
        )
        return Influencer(
            id=influencer_id,
            brand_id=brand_id,
            name=name,
            social_handle=social_handle,
            commission_rate=Decimal(_decimal_param(commission_rate)),
            created_at=created_at,
        )
