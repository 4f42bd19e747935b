"""
Database Performance Monitoring for the Crypto Compliance Tracker

This module provides:
- Query timing context manager for slow query detection
- Prometheus metrics for query durations and the connection pool
- Per-operation statistics readable in-process (used by tests and
  the database health endpoint)

Usage:
    from database.monitoring import query_timer, get_db_metrics

    with query_timer("jurisdiction.regulatory_bodies"):
        bodies = repo.list_regulatory_bodies(jurisdiction_id)
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from functools import wraps
from typing import Optional, Dict, Any, List, Callable

from prometheus_client import Counter, Gauge, Histogram
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


# ============================================
# CONFIGURATION
# ============================================

@dataclass
class MonitoringConfig:
    """Configuration for database monitoring."""
    slow_query_threshold_ms: float = 1000.0  # Log queries slower than this
    warning_threshold_ms: float = 500.0       # Info-log queries slower than this
    enable_prometheus: bool = True
    enable_logging: bool = True


_config = MonitoringConfig()


def configure_monitoring(
    slow_query_threshold_ms: float = 1000.0,
    warning_threshold_ms: float = 500.0,
    enable_prometheus: bool = True,
    enable_logging: bool = True
) -> None:
    """
    Configure monitoring settings.

    Args:
        slow_query_threshold_ms: Log queries slower than this (ms)
        warning_threshold_ms: Info-log queries slower than this (ms)
        enable_prometheus: Record Prometheus metrics
        enable_logging: Emit slow-query log lines
    """
    global _config
    _config = MonitoringConfig(
        slow_query_threshold_ms=slow_query_threshold_ms,
        warning_threshold_ms=warning_threshold_ms,
        enable_prometheus=enable_prometheus,
        enable_logging=enable_logging
    )


# ============================================
# PROMETHEUS METRICS
# ============================================

db_query_duration = Histogram(
    'compliance_db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation', 'status'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

db_query_total = Counter(
    'compliance_db_query_total',
    'Total number of database queries',
    ['operation', 'status']
)

db_slow_queries_total = Counter(
    'compliance_db_slow_queries_total',
    'Total number of slow database queries',
    ['operation']
)

db_pool_size = Gauge(
    'compliance_db_pool_size',
    'Current database connection pool size'
)

db_pool_checked_out = Gauge(
    'compliance_db_pool_checked_out',
    'Number of connections currently checked out'
)


# ============================================
# QUERY STATS TRACKING
# ============================================

@dataclass
class QueryStats:
    """Statistics for a single operation."""
    operation: str
    count: int = 0
    total_time_ms: float = 0.0
    min_time_ms: float = float('inf')
    max_time_ms: float = 0.0
    errors: int = 0
    slow_queries: int = 0
    last_executed: Optional[datetime] = None

    @property
    def avg_time_ms(self) -> float:
        return self.total_time_ms / self.count if self.count > 0 else 0.0

    def record(self, duration_ms: float, error: bool = False, slow: bool = False) -> None:
        self.count += 1
        self.total_time_ms += duration_ms
        self.min_time_ms = min(self.min_time_ms, duration_ms)
        self.max_time_ms = max(self.max_time_ms, duration_ms)
        self.last_executed = datetime.now()

        if error:
            self.errors += 1
        if slow:
            self.slow_queries += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'count': self.count,
            'total_time_ms': round(self.total_time_ms, 2),
            'avg_time_ms': round(self.avg_time_ms, 2),
            'min_time_ms': round(self.min_time_ms, 2) if self.min_time_ms != float('inf') else 0.0,
            'max_time_ms': round(self.max_time_ms, 2),
            'errors': self.errors,
            'slow_queries': self.slow_queries,
            'last_executed': self.last_executed.isoformat() if self.last_executed else None
        }


class QueryStatsCollector:
    """Thread-safe collector for query statistics."""

    def __init__(self):
        self._stats: Dict[str, QueryStats] = {}
        self._lock = threading.Lock()
        self._start_time = datetime.now()

    def record(self, operation: str, duration_ms: float, error: bool = False, slow: bool = False) -> None:
        with self._lock:
            if operation not in self._stats:
                self._stats[operation] = QueryStats(operation=operation)
            self._stats[operation].record(duration_ms, error, slow)

    def get_stats(self, operation: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            if operation:
                stat = self._stats.get(operation)
                return stat.to_dict() if stat else {}

            return {
                'uptime_seconds': (datetime.now() - self._start_time).total_seconds(),
                'operations': {
                    op: stats.to_dict() for op, stats in self._stats.items()
                }
            }

    def get_slow_queries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                stats.to_dict()
                for stats in self._stats.values()
                if stats.slow_queries > 0
            ]

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
            self._start_time = datetime.now()


_stats_collector = QueryStatsCollector()


def get_db_metrics() -> Dict[str, Any]:
    """
    Get current per-operation query statistics.

    Returns:
        ``{"uptime_seconds": float, "operations": {name: stats}}``
    """
    return _stats_collector.get_stats()


def get_slow_query_report() -> List[Dict[str, Any]]:
    """Operations that recorded at least one slow query."""
    return _stats_collector.get_slow_queries()


def reset_metrics() -> None:
    """Reset all collected statistics."""
    _stats_collector.reset()


# ============================================
# QUERY TIMER
# ============================================

@contextmanager
def query_timer(operation: str):
    """
    Context manager to time and monitor database queries.

    Logs slow queries and records metrics for monitoring.

    Args:
        operation: Name of the operation (e.g., 'jurisdiction.laws')
    """
    start_time = time.perf_counter()
    error_occurred = False

    try:
        yield
    except Exception:
        error_occurred = True
        raise
    finally:
        duration = time.perf_counter() - start_time
        duration_ms = duration * 1000

        is_slow = duration_ms > _config.slow_query_threshold_ms
        is_warning = duration_ms > _config.warning_threshold_ms

        _stats_collector.record(
            operation=operation,
            duration_ms=duration_ms,
            error=error_occurred,
            slow=is_slow
        )

        if _config.enable_prometheus:
            status = "error" if error_occurred else "success"
            db_query_duration.labels(operation=operation, status=status).observe(duration)
            db_query_total.labels(operation=operation, status=status).inc()

            if is_slow:
                db_slow_queries_total.labels(operation=operation).inc()

        if _config.enable_logging:
            if is_slow:
                logger.warning(
                    "SLOW QUERY: %s took %.2fms (threshold: %sms)",
                    operation, duration_ms, _config.slow_query_threshold_ms
                )
            elif is_warning and not error_occurred:
                logger.info("Query %s took %.2fms", operation, duration_ms)


def timed_query(operation: str):
    """
    Decorator form of :func:`query_timer`.

    Usage:
        @timed_query("policies.list_for_user")
        def list_for_user(self, user_id: int):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            with query_timer(operation):
                return func(*args, **kwargs)
        return wrapper
    return decorator


# ============================================
# CONNECTION POOL MONITORING
# ============================================

def _pool_stats(engine) -> Dict[str, int]:
    """Size/checked-out/overflow counts; zero for pools without counters (SQLite)."""
    pool = engine.pool
    stats = {}
    for name in ('size', 'checkedout', 'overflow'):
        method = getattr(pool, name, None)
        stats[name] = method() if callable(method) else 0
    return stats


def update_pool_metrics(engine) -> None:
    """Push connection pool gauges from a SQLAlchemy engine."""
    if not _config.enable_prometheus:
        return

    stats = _pool_stats(engine)
    db_pool_size.set(stats['size'])
    db_pool_checked_out.set(stats['checkedout'])


# ============================================
# HEALTH CHECK METRICS
# ============================================

@dataclass
class HealthStatus:
    """Database health status."""
    healthy: bool
    latency_ms: float
    pool_size: int = 0
    pool_checked_out: int = 0
    pool_overflow: int = 0
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'healthy': self.healthy,
            'latency_ms': round(self.latency_ms, 2),
            'pool': {
                'size': self.pool_size,
                'checked_out': self.pool_checked_out,
                'overflow': self.pool_overflow
            },
            'error': self.error,
            'timestamp': self.timestamp.isoformat()
        }


def check_health(engine, session_factory) -> HealthStatus:
    """
    Perform a database round trip and collect pool statistics.

    Args:
        engine: SQLAlchemy Engine
        session_factory: SQLAlchemy session factory

    Returns:
        HealthStatus with check results
    """
    start_time = time.perf_counter()

    try:
        session = session_factory()
        try:
            session.execute(text("SELECT 1"))
        finally:
            session.close()
    except SQLAlchemyError as e:
        latency = (time.perf_counter() - start_time) * 1000
        logger.error("Database health check failed: %s", e)
        return HealthStatus(healthy=False, latency_ms=latency, error=str(e))

    latency = (time.perf_counter() - start_time) * 1000
    update_pool_metrics(engine)
    stats = _pool_stats(engine)

    return HealthStatus(
        healthy=True,
        latency_ms=latency,
        pool_size=stats['size'],
        pool_checked_out=stats['checkedout'],
        pool_overflow=stats['overflow']
    )
