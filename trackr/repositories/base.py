"""
Base repository with connection management and schema initialization.

Timestamps are stored as naive UTC TIMESTAMP columns; conversion to and
from aware datetimes happens at this boundary only.
"""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Optional, Union

import duckdb

from trackr.config import config
from trackr.exceptions import StoreQueryError, StoreUnavailableError
from trackr.filters import BRAND_TZ
from trackr.observability import get_logger

logger = get_logger(__name__)

MEMORY = ":memory:"


def to_utc_naive(ts: Optional[datetime]) -> Optional[datetime]:
    """Aware (or brand-local naive) datetime -> naive UTC for storage."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=BRAND_TZ)
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(ts: Optional[datetime]) -> Optional[datetime]:
    """Stored naive UTC -> aware UTC datetime."""
    if ts is None:
        return None
    return ts.replace(tzinfo=timezone.utc)


def utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseRepository:
    """
    Base repository with DuckDB connection management.

    Usage:
        class CouponsRepository(BaseRepository):
            async def get_coupon(self, coupon_id: str):
                return await self.fetchone("SELECT * FROM coupons WHERE id = ?", [coupon_id])
    """

    def __init__(self, db_path: Union[str, Path] = None, query_timeout: float = None):
        self.db_path = str(db_path or config.store.db_path)
        self.query_timeout = query_timeout or config.store.query_timeout
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = asyncio.Lock()  # Serializes all database access

    async def connect(self) -> None:
        """Open the database, create the schema and start the worker thread."""
        async with self._lock:
            if self._connection is not None:
                return
            try:
                if self.db_path != MEMORY:
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(self.db_path)
            except (duckdb.Error, OSError) as e:
                logger.error(f"Cannot open record store at {self.db_path}: {e}")
                raise StoreUnavailableError(str(e))
            self._init_schema()

            # Single worker: a DuckDB connection is used by one thread at a time
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="duckdb")
            logger.info(f"DuckDB connected: {self.db_path}")

    async def close(self) -> None:
        """Stop the worker thread, then close the connection."""
        async with self._lock:
            if self._executor:
                self._executor.shutdown(wait=True)
                self._executor = None
            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("DuckDB connection closed")

    @asynccontextmanager
    async def connection(self):
        """Connection held under the repository lock, connecting on first use."""
        if self._connection is None:
            await self.connect()
        async with self._lock:
            yield self._connection

    async def _run(self, work: Callable[[Any], Any], sql: str, relation: str = None) -> Any:
        """
        Run work(conn) on the worker thread, bounded by query_timeout.

        The event loop keeps serving other requests while DuckDB works.
        """
        async with self.connection() as conn:
            loop = asyncio.get_running_loop()
            try:
                return await asyncio.wait_for(
                    loop.run_in_executor(self._executor, work, conn),
                    timeout=self.query_timeout,
                )
            except asyncio.TimeoutError:
                # Abort the statement so the worker is free for the next caller
                conn.interrupt()
                logger.error(f"Query on {relation or 'store'} timed out after {self.query_timeout}s")
                raise StoreQueryError("Query timed out", sql.strip()[:200], relation=relation)
            except duckdb.Error as e:
                logger.error(f"Query on {relation or 'store'} failed: {e}")
                raise StoreQueryError("Query failed", str(e), relation=relation)

    async def execute(self, sql: str, params: list = None, relation: str = None) -> None:
        """Execute a write; driver errors become StoreQueryError."""
        await self._run(lambda conn: conn.execute(sql, params or []), sql, relation)

    async def fetchone(self, sql: str, params: list = None, relation: str = None) -> Optional[tuple]:
        """Execute query and fetch one result."""
        return await self._run(lambda conn: conn.execute(sql, params or []).fetchone(), sql, relation)

    async def fetchall(self, sql: str, params: list = None, relation: str = None) -> list:
        """Execute query and fetch all results."""
        return await self._run(lambda conn: conn.execute(sql, params or []).fetchall(), sql, relation)

    def _init_schema(self) -> None:
        """Create database schema if not exists."""
        schema_sql = """
        CREATE TABLE IF NOT EXISTS brands (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            owner_id VARCHAR,
            external_store_id VARCHAR,
            is_real BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS influencers (
            id VARCHAR PRIMARY KEY,
            brand_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            social_handle VARCHAR,
            commission_rate DECIMAL(6, 4) DEFAULT 0,
            created_at TIMESTAMP
        );

        -- Soft-deleted via is_active = FALSE, never removed
        CREATE TABLE IF NOT EXISTS coupon_classifications (
            id VARCHAR PRIMARY KEY,
            brand_id VARCHAR NOT NULL,
            name VARCHAR NOT NULL,
            description VARCHAR,
            color VARCHAR DEFAULT '#6366f1',
            is_active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS coupons (
            id VARCHAR PRIMARY KEY,
            brand_id VARCHAR NOT NULL,
            code VARCHAR NOT NULL,
            influencer_id VARCHAR,
            discount_value DECIMAL(12, 2) DEFAULT 0,
            discount_type VARCHAR DEFAULT 'percentage',
            is_active BOOLEAN DEFAULT TRUE,
            classification VARCHAR,
            classification_updated_at TIMESTAMP,
            created_at TIMESTAMP
        );

        -- One row per order event; sale_date is UTC
        CREATE TABLE IF NOT EXISTS conversions (
            id VARCHAR PRIMARY KEY,
            brand_id VARCHAR NOT NULL,
            order_id VARCHAR NOT NULL,
            order_number VARCHAR,
            coupon_id VARCHAR,
            order_amount DECIMAL(18, 4) NOT NULL DEFAULT 0,
            commission_amount DECIMAL(18, 4) DEFAULT 0,
            status VARCHAR NOT NULL,
            order_is_real BOOLEAN DEFAULT TRUE,
            sale_date TIMESTAMP,
            customer_id VARCHAR,
            customer_email VARCHAR,
            metadata VARCHAR
        );

        CREATE INDEX IF NOT EXISTS idx_influencers_brand ON influencers(brand_id);
        CREATE INDEX IF NOT EXISTS idx_classifications_brand ON coupon_classifications(brand_id);
        CREATE INDEX IF NOT EXISTS idx_coupons_brand ON coupons(brand_id);
        CREATE INDEX IF NOT EXISTS idx_conversions_brand_date ON conversions(brand_id, sale_date);
        CREATE INDEX IF NOT EXISTS idx_conversions_coupon ON conversions(coupon_id);
        """
        self._connection.execute(schema_sql)
        logger.info("DuckDB schema initialized")
