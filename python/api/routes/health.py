"""Liveness and database health endpoints (unauthenticated)."""

import logging

from fastapi import APIRouter, Depends

from api.models import HealthResponse
from database.connection import DatabaseSessionProvider, get_db_provider
from database.monitoring import check_health, get_db_metrics, get_slow_query_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
def health():
    return {"status": "ok"}


@router.get("/health/database", summary="Database round trip, pool and query statistics")
def database_health(provider: DatabaseSessionProvider = Depends(get_db_provider)):
    """Always HTTP 200; ``status`` is "degraded" when the round trip fails."""
    if not provider.initialized:
        provider.init()

    result = check_health(provider.engine, provider.session_factory)
    if not result.healthy:
        logger.warning("Database health check reported unhealthy: %s", result.error)

    return {
        "status": "ok" if result.healthy else "degraded",
        "database": result.to_dict(),
        "queries": get_db_metrics(),
        "slowQueries": get_slow_query_report(),
    }
