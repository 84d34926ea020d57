"""Health check endpoint."""
import time

from fastapi import APIRouter, Request

from trackr.config import config
from trackr.observability import get_correlation_id
from web.schemas import HealthResponse
from ._deps import limiter, get_store, get_logger, START_TIME, READ_LIMIT

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit(READ_LIMIT)
async def health_check(request: Request):
    """Health check endpoint for Docker/load balancer monitoring."""
    uptime_seconds = int(time.time() - START_TIME)
    store = get_store(request)

    latency_ms = None
    if store is None:
        store_status = "not_configured"
    else:
        try:
            start = time.perf_counter()
            await store.fetchone("SELECT 1")
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            store_status = "connected"
        except Exception as e:
            logger.warning(f"Health check store probe failed: {e}")
            store_status = "error"

    return {
        "status": "healthy" if store_status == "connected" else "degraded",
        "version": config.version,
        "uptime_seconds": uptime_seconds,
        "correlation_id": get_correlation_id(),
        "store": {"status": store_status, "latency_ms": latency_ms},
    }
