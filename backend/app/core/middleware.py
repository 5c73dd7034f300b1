"""
Portal HTTP Middleware
Request logging with correlation ids, security headers, body size limit
"""

import time
from typing import Callable, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


# Health checks and API docs are not worth a log line each
SKIP_LOGGING_PATHS: Set[str] = {
    "/health",
    "/api/v1/health",
    "/",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

SLOW_REQUEST_MS = 1000


def should_skip_logging(path: str) -> bool:
    if path in SKIP_LOGGING_PATHS:
        return True
    return path.startswith("/static/") or path.endswith((".js", ".css", ".ico"))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (taken from X-Request-ID when the client
    sends one), logs the outcome through PortalLogger.log_request and echoes
    X-Request-ID / X-Response-Time back.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.log_error_with_context(
                exc,
                context=f"{request.method} {path}",
                http_method=request.method,
                http_path=path,
                duration_ms=duration_ms,
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if not should_skip_logging(path):
                logger.log_request(
                    request.method,
                    path,
                    response.status_code,
                    duration_ms,
                    client_ip=request.client.host if request.client else "unknown",
                )
                if duration_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {request.method} {path} took {duration_ms:.2f}ms",
                        extra={"event_type": "slow_request", "http_path": path, "duration_ms": duration_ms}
                    )
            return response
        finally:
            set_request_id("")
            set_user_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Browser hardening headers on every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject bodies above max_size before they are parsed.

    Per-document limits are enforced by the upload validation; this only
    guards the process against oversized multipart requests.
    """

    def __init__(self, app: ASGIApp, max_size: int = 20 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")

        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Rejected {request.method} {request.url.path}: body of {content_length} bytes",
                extra={"event_type": "request_too_large", "max_size": self.max_size}
            )
            return JSONResponse(
                status_code=413,
                content={
                    "status": "error",
                    "message": f"Request body too large. Maximum size is {self.max_size // 1024 // 1024}MB",
                }
            )

        return await call_next(request)
