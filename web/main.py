"""
FastAPI web application for the TrackrCommerce dashboard API.
"""
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse, JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from trackr.config import config, validate_config
from trackr.exceptions import ConfigurationError, StoreUnavailableError
from trackr.observability import setup_logging, get_logger
from trackr.repositories import DuckDBRecordStore, RecordStore
from web.middleware import RequestLoggingMiddleware, RequestTimeoutMiddleware
from web.routes.api import router as api_router
from web.routes.api._deps import limiter

# Configure structured logging
# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
log_format = os.getenv("LOG_FORMAT", "text")
log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(level=log_level, json_format=(log_format == "json"))
logger = get_logger(__name__)


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """
    Build the API application.

    When no store is passed the app opens a DuckDBRecordStore at
    TRACKR_DB_PATH on startup and owns it for its lifetime.
    """
    app = FastAPI(
        title="TrackrCommerce",
        description="Influencer coupon sales dashboard API",
        version=config.version,
        default_response_class=ORJSONResponse  # 3-10x faster JSON serialization
    )

    app.state.limiter = limiter
    app.state.store = store
    app.state.owns_store = store is None

    # Custom rate limit exceeded handler
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
        return JSONResponse(
            status_code=429,
            content={
                "error": "Rate limit exceeded",
                "detail": "Too many requests. Please try again later.",
                "retry_after": exc.detail
            }
        )

    # Add request logging middleware (adds correlation IDs and timing)
    app.add_middleware(RequestLoggingMiddleware)

    # Must be AFTER logging so correlation_id is set when timeout fires
    app.add_middleware(RequestTimeoutMiddleware)

    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        logger.info("TrackrCommerce API starting...")

        # Validate configuration early - fail fast with clear errors
        try:
            validate_config()
            logger.info("Configuration validated")
        except ConfigurationError as e:
            logger.critical(f"Configuration error: {e}")
            raise SystemExit(1)

        if app.state.owns_store:
            try:
                repository = DuckDBRecordStore(config.store.db_path)
                await repository.connect()
                app.state.store = repository
            except StoreUnavailableError as e:
                # Serve anyway: every widget reports the store as not configured
                logger.error(f"Record store unavailable: {e}")

        logger.info("TrackrCommerce API ready")

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.owns_store and app.state.store is not None:
            try:
                await app.state.store.close()
            except Exception as e:
                logger.warning(f"Error closing record store: {e}")
        logger.info("TrackrCommerce API stopped")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web.main:app", host=config.web.host, port=config.web.port)
