"""
Database Package for the Crypto Compliance Tracker

This package provides:
- SQLAlchemy ORM models for all entities
- FastAPI Dependency Injection for database sessions
- Repository pattern for data access
- Jurisdiction aggregation/import and legacy data migration
- Jurisdiction checklists and user subscriptions
- Performance monitoring and query timing
"""

from database.models import (
    Base,
    User,
    Transaction,
    Registration,
    RegistrationVersion,
    AuditLog,
    Jurisdiction,
    Law,
    Obligation,
    Policy,
    PolicyApproval,
    TokenRegistration,
    ComplianceReportType,
    ComplianceReport,
    ReportSchedule,
    ChecklistCategory,
    ChecklistItem,
    UserChecklistProgress,
    UserJurisdiction,
)
from database.connection import (
    DatabaseSessionProvider,
    DatabaseSettings,
    # FastAPI dependencies
    get_db,
    get_db_provider,
    # Initialization
    init_db,
    close_db,
    # Testing support
    create_test_provider,
)
from database.monitoring import (
    query_timer,
    timed_query,
    get_db_metrics,
    get_slow_query_report,
    reset_metrics,
    configure_monitoring,
    check_health,
    HealthStatus,
)

__all__ = [
    'Base',
    # Core models
    'User',
    'Transaction',
    'Registration',
    'RegistrationVersion',
    'AuditLog',
    'Jurisdiction',
    'Law',
    'Obligation',
    'Policy',
    'PolicyApproval',
    'TokenRegistration',
    'ComplianceReportType',
    'ComplianceReport',
    'ReportSchedule',
    'ChecklistCategory',
    'ChecklistItem',
    'UserChecklistProgress',
    'UserJurisdiction',
    # Database provider
    'DatabaseSessionProvider',
    'DatabaseSettings',
    # FastAPI dependencies
    'get_db',
    'get_db_provider',
    # Initialization
    'init_db',
    'close_db',
    # Testing
    'create_test_provider',
    # Monitoring
    'query_timer',
    'timed_query',
    'get_db_metrics',
    'get_slow_query_report',
    'reset_metrics',
    'configure_monitoring',
    'check_health',
    'HealthStatus',
]
