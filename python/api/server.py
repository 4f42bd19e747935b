"""
FastAPI Compliance Tracker API Server

Session-authenticated REST API for crypto businesses: business
registrations, jurisdiction data, compliance policies, token
registrations and compliance reporting.

Usage:
    uvicorn api.server:app --reload --port 5000
"""

import os
import secrets
import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    rate_limiter,
    setup_cors,
    setup_exception_handlers,
)
from api.routes import admin, auth, checklists, compliance, health, jurisdictions, policies, registrations, tokens
from config_manager import get_config
from database.connection import close_db, init_db
from database.monitoring import configure_monitoring
from security_logger import get_security_logger

config = get_config()

# Setup logging
logging.basicConfig(level=config.logging.level, format=config.logging.format)
logger = logging.getLogger(__name__)

# Environment variables with defaults
API_HOST = os.getenv("API_HOST", config.server.host)
API_PORT = int(os.getenv("API_PORT", str(config.server.port)))

configure_monitoring(
    slow_query_threshold_ms=config.monitoring.slow_query_threshold_ms,
    warning_threshold_ms=config.monitoring.warning_threshold_ms,
    enable_prometheus=config.monitoring.enable_prometheus,
)
get_security_logger(
    log_dir=config.logging.security_log_dir,
    enable_file=config.logging.security_log_enabled,
)
rate_limiter.configure(
    max_requests=config.rate_limit.max_requests,
    window_seconds=config.rate_limit.window_seconds,
)


def _session_secret() -> str:
    if config.session.secret:
        return config.session.secret
    if config.is_production:
        # require_environment() aborts startup; this key never signs a real cookie
        logger.error("SESSION_SECRET is not set in production")
    else:
        logger.warning("SESSION_SECRET is not set; using a random per-process secret")
    return secrets.token_hex(32)


# Create FastAPI application
app = FastAPI(
    title="Crypto Compliance Tracker API",
    description="Registrations, jurisdiction data, policies, token registrations and compliance reporting",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# Setup middleware (the last one added runs first)
app.add_middleware(
    SessionMiddleware,
    secret_key=_session_secret(),
    session_cookie=config.session.cookie_name,
    max_age=config.session.max_age_seconds,
    same_site=config.session.same_site,
    https_only=config.is_production,
)
app.add_middleware(
    RateLimitMiddleware,
    limiter=rate_limiter,
    path_prefix=config.rate_limit.path_prefix,
    enabled=config.rate_limit.enabled,
)
app.add_middleware(RequestLoggingMiddleware)
setup_cors(app, config.server.cors_origins)
setup_exception_handlers(app)

for module in (auth, admin, tokens, policies, compliance, jurisdictions, checklists, registrations, health):
    app.include_router(module.router)


@app.on_event("startup")
def startup():
    """Check the environment and connect to the database."""
    logger.info("Starting Compliance Tracker API (%s)...", config.server.environment)
    get_config().require_environment()
    init_db()
    logger.info("Database connection initialized")


@app.on_event("shutdown")
def shutdown():
    close_db()
    logger.info("Database connections closed")


# Root redirect to docs
@app.get("/", include_in_schema=False)
def root():
    """Redirect root to API documentation."""
    return RedirectResponse(url="/api/docs")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
