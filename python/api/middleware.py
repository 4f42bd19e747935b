"""
FastAPI Middleware for the Compliance Tracker API

Provides CORS configuration, request logging, per-IP rate limiting and
global error handling. Every error body has the shape
``{"message": str, "errors"?: list, "error"?: str}``.
"""

import os
import math
import time
import uuid
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from config_manager import get_config
from log_utils import sanitize_for_logging
from security_logger import RequestContext, get_security_logger

logger = logging.getLogger(__name__)

# Default allowed origins for localhost development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5000",  # API serving the built client
    "http://localhost:5173",  # Vite dev port
    "http://127.0.0.1:5000",
    "http://127.0.0.1:5173",
]

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later"
VALIDATION_MESSAGE = "Invalid input data"


def setup_cors(app: FastAPI, origins: Optional[List[str]] = None) -> None:
    """Configure CORS middleware for the application.

    Origins can be customized via CORS_ORIGINS environment variable
    (comma-separated list of allowed origins), which wins over ``origins``.
    Credentials are allowed so the session cookie travels cross-origin.
    """
    cors_origins_env = os.getenv("CORS_ORIGINS", "")
    if cors_origins_env:
        allowed_origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    else:
        allowed_origins = origins or DEFAULT_CORS_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Processing-Time-MS"],
    )


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def request_context(request: Request, user_id: Any = "") -> RequestContext:
    """Correlation data for security events raised while serving ``request``."""
    if not user_id and "session" in request.scope:
        user_id = request.session.get("user_id", "")
    return RequestContext.create(
        request_id=getattr(request.state, "request_id", None),
        user_id=user_id,
        source_ip=client_ip(request),
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all requests with sanitized inputs."""

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or f"REQ-{uuid.uuid4().hex[:8]}"

        request.state.request_id = request_id
        request.state.start_time = start_time

        # Sanitize path to prevent log injection
        sanitized_path = sanitize_for_logging(str(request.url.path))

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "Request failed: method=%s path=%s error=%s processing_time_ms=%d request_id=%s",
                request.method,
                sanitized_path,
                sanitize_for_logging(str(exc)),
                processing_time_ms,
                request_id,
            )
            raise

        processing_time_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-MS"] = str(processing_time_ms)

        # API calls only; static assets would drown the log
        if request.url.path.startswith("/api"):
            logger.info(
                "%s %s %d in %dms request_id=%s",
                request.method,
                sanitized_path,
                response.status_code,
                processing_time_ms,
                request_id,
            )

        return response


# ============================================
# RATE LIMITING
# ============================================

class FixedWindowRateLimiter:
    """
    Per-key request counter over fixed windows.

    Each key gets ``max_requests`` hits per ``window_seconds``; the window
    starts at the key's first hit. State is process-local. Expired windows
    are swept at most once per window length, so idle callers do not
    accumulate.
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 900, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = clock()

    def configure(self, max_requests: int, window_seconds: int) -> None:
        with self._lock:
            self.max_requests = max_requests
            self.window_seconds = window_seconds
            self._windows.clear()
            self._last_sweep = self._clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """
        Count one request for ``key``.

        Returns:
            (allowed, remaining, seconds until the window resets)
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)

        reset_in = max(0.0, self.window_seconds - (now - started))
        remaining = max(0, self.max_requests - count)
        return count <= self.max_requests, remaining, reset_in

    def reset(self) -> None:
        """Forget all windows (used by tests)."""
        with self._lock:
            self._windows.clear()


rate_limiter = FixedWindowRateLimiter()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects callers that exceed the per-IP limit on API paths with 429."""

    def __init__(self, app, limiter: FixedWindowRateLimiter = rate_limiter, path_prefix: str = "/api/", enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable):
        if not self.enabled or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        ip = client_ip(request)
        allowed, remaining, reset_in = self.limiter.hit(ip)
        headers = {
            "RateLimit-Limit": str(self.limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(math.ceil(reset_in)),
        }

        if not allowed:
            get_security_logger().log_rate_limited(request.url.path, request_context(request))
            headers["Retry-After"] = str(math.ceil(reset_in))
            return JSONResponse(status_code=429, content={"message": RATE_LIMIT_MESSAGE}, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


# ============================================
# ERROR HANDLING
# ============================================

def create_error_response(
    message: str,
    status_code: int = 500,
    errors: Optional[List[Dict[str, Any]]] = None,
    error: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        message: Human-readable message
        status_code: HTTP status code
        errors: Per-field validation errors (optional)
        error: Underlying error detail, development only (optional)
        headers: Extra response headers (optional)
    """
    content: Dict[str, Any] = {"message": message}
    if errors is not None:
        content["errors"] = errors
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def format_validation_errors(raw_errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into ``{path, message, code}`` items."""
    errors = []
    for err in raw_errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] == "body":
            loc = loc[1:]
        errors.append({
            "path": loc,
            "message": err.get("msg", ""),
            "code": err.get("type", "invalid"),
        })
    return errors


def _is_development() -> bool:
    return not get_config().is_production


def _log_validation_failure(request: Request, errors: List[Dict[str, Any]]) -> None:
    first = errors[0] if errors else {}
    get_security_logger().log_validation_failure(
        field=".".join(str(p) for p in first.get("path", [])),
        error_code=first.get("code", "invalid"),
        input_value="",
        context=request_context(request),
        source="api.middleware",
        additional_context={"path": request.url.path, "error_count": len(errors)},
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map request body and model validation errors to 400."""
    errors = format_validation_errors(exc.errors())
    _log_validation_failure(request, errors)
    return create_error_response(VALIDATION_MESSAGE, status_code=400, errors=errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for HTTP exceptions raised by routes and dependencies."""
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.status_code >= 500:
        logger.error(
            "HTTP exception: status=%d detail=%s request_id=%s",
            exc.status_code,
            sanitize_for_logging(str(exc.detail)),
            request_id,
        )
    else:
        logger.debug(
            "HTTP exception: status=%d detail=%s request_id=%s",
            exc.status_code,
            sanitize_for_logging(str(exc.detail)),
            request_id,
        )

    detail = exc.detail
    if isinstance(detail, dict):
        return create_error_response(
            message=str(detail.get("message", "")),
            status_code=exc.status_code,
            errors=detail.get("errors"),
            error=detail.get("error"),
            headers=getattr(exc, "headers", None),
        )

    return create_error_response(
        message=detail if isinstance(detail, str) else str(detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors.

    Sanitizes error messages to prevent information leakage; the
    underlying message is only included outside production.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception: type=%s message=%s request_id=%s",
        type(exc).__name__,
        sanitize_for_logging(str(exc)),
        request_id,
    )

    return create_error_response(
        message="Internal server error",
        status_code=500,
        error=str(exc) if _is_development() else None,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers for the application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
