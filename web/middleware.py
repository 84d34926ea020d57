"""
FastAPI middleware for the dashboard API.

RequestLoggingMiddleware tags every request with a correlation ID (taken
from X-Request-ID when the proxy sends one) and logs one start/finish pair
carrying the caller and brand. RequestTimeoutMiddleware turns slow requests
into a 504 so a stuck store read cannot hold a worker forever.
"""
import asyncio
import re
import time
from typing import Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from trackr.observability import (
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0

HEALTH_PATHS = ("/api/health", "/health")

_BRAND_PATH = re.compile(r"^/api/brands/([^/]+)")


def _brand_from_path(path: str) -> Optional[str]:
    match = _BRAND_PATH.match(path)
    return match.group(1) if match else None


def _request_context(request: Request) -> Dict[str, Optional[str]]:
    path = request.url.path
    return {
        "method": request.method,
        "path": path,
        "brand_id": _brand_from_path(path),
        "user_id": request.headers.get("X-User-Id"),
        "user_role": request.headers.get("X-User-Role"),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Correlation ID plus start/finish logging with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        context = _request_context(request)
        quiet = context["path"] in HEALTH_PATHS
        start = time.perf_counter()

        if not quiet:
            logger.info(f"Request started: {context['method']} {context['path']}", extra=context)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {context['method']} {context['path']}",
                extra={**context, "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                       "error": str(e)},
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not quiet:
            # 4xx here is mostly auth and bad filters; worth seeing, not alarming
            log = logger.info if response.status_code < 400 else logger.warning
            log(
                f"Request completed: {context['method']} {context['path']}",
                extra={**context, "status_code": response.status_code,
                       "duration_ms": round(duration_ms, 2)},
            )

        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a request runs past `timeout` seconds."""

    def __init__(self, app, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in HEALTH_PATHS:
            return await call_next(request)

        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            context = _request_context(request)
            logger.warning(
                f"Request timeout: {context['method']} {context['path']}",
                extra={**context, "timeout": self.timeout},
            )
            return JSONResponse(
                status_code=504,
                content={
                    "data": None,
                    "error": "Tempo limite da requisição excedido",
                    "correlation_id": get_correlation_id(),
                },
            )
