"""
Compliance reporting routes: report-type catalog, report filings,
recurring schedules and the compliance news feed.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from api.auth import ensure_owner_or_admin, get_current_user, require_admin
from api.models import (
    ComplianceReportCreate,
    ComplianceReportUpdate,
    ErrorResponse,
    ReportScheduleCreate,
    ReportScheduleUpdate,
    ReportTypeCreate,
)
from api.routes import bad_request, not_found, serialize, server_error, storage_errors
from config_manager import get_config
from database.connection import get_db
from database.models import ComplianceReport, ReportSchedule, ReportStatus, User
from database.report_scheduling import (
    MAX_UPCOMING,
    ScheduleNotActiveError,
    generate_report,
    upcoming_due_dates,
)
from database.repositories import (
    ComplianceReportRepository,
    DuplicateEntityError,
    ReportScheduleRepository,
    ReportTypeRepository,
)
from news_client import NewsClient, NewsFetchError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/compliance", tags=["compliance"])

REPORT_TYPE_NOT_FOUND = "Report type not found"


def _require_report_type(db: Session, report_type_id: int) -> None:
    if ReportTypeRepository(db).get(report_type_id) is None:
        raise not_found(REPORT_TYPE_NOT_FOUND)


# ============================================
# REPORT TYPE CATALOG
# ============================================

@router.get("/report-types", summary="Report type catalog")
def list_report_types(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch report types"):
        return serialize(ReportTypeRepository(db).list_all())


@router.post(
    "/report-types",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Add a report type (admin)",
)
def create_report_type(body: ReportTypeCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create report type"):
        try:
            report_type = ReportTypeRepository(db).create(body.to_row())
        except DuplicateEntityError:
            raise bad_request(f"Report type already exists: {body.name}")
        db.commit()
    return report_type.to_dict()


# ============================================
# REPORTS
# ============================================

def get_owned_report(
    report_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ComplianceReport:
    report = ComplianceReportRepository(db).get(report_id)
    if report is None:
        raise not_found("Report not found")
    ensure_owner_or_admin(request, user, report.user_id, "compliance_report", report_id)
    return report


@router.get("/reports", summary="Caller's reports (all reports for admins)")
def list_reports(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    repo = ComplianceReportRepository(db)
    with storage_errors(db, "Failed to fetch reports"):
        reports = repo.list_all() if user.is_admin else repo.list_by_user(user.id)
    return serialize(reports)


@router.post(
    "/reports",
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Unknown report type"}},
)
def create_report(body: ComplianceReportCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create report"):
        _require_report_type(db, body.report_type_id)
        report = ComplianceReportRepository(db).create(user.id, body.to_row())
        db.commit()
    return report.to_dict()


@router.get("/reports/{report_id}", responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
def get_report(report: ComplianceReport = Depends(get_owned_report)):
    return report.to_dict()


@router.patch("/reports/{report_id}", summary="Update a report")
def update_report(
    body: ComplianceReportUpdate,
    report: ComplianceReport = Depends(get_owned_report),
    db: Session = Depends(get_db),
):
    """Submitting a report without a submission date stamps the current time."""
    updates = body.to_row(exclude_unset=True)
    if (
        body.status == ReportStatus.SUBMITTED
        and report.submission_date is None
        and updates.get('submission_date') is None
    ):
        updates['submission_date'] = datetime.now(timezone.utc)

    with storage_errors(db, "Failed to update report"):
        updated = ComplianceReportRepository(db).update(report.id, updates)
        db.commit()
    return updated.to_dict()


# ============================================
# SCHEDULES
# ============================================

def get_owned_schedule(
    schedule_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReportSchedule:
    schedule = ReportScheduleRepository(db).get(schedule_id)
    if schedule is None:
        raise not_found("Report schedule not found")
    ensure_owner_or_admin(request, user, schedule.user_id, "report_schedule", schedule_id)
    return schedule


@router.get("/report-schedules", summary="Caller's report schedules")
def list_schedules(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch report schedules"):
        return serialize(ReportScheduleRepository(db).list_by_user(user.id))


@router.post(
    "/report-schedules",
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Unknown report type"}},
)
def create_schedule(body: ReportScheduleCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create report schedule"):
        _require_report_type(db, body.report_type_id)
        schedule = ReportScheduleRepository(db).create(user.id, body.to_row())
        db.commit()
    return schedule.to_dict()


@router.patch("/report-schedules/{schedule_id}")
def update_schedule(
    body: ReportScheduleUpdate,
    schedule: ReportSchedule = Depends(get_owned_schedule),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to update report schedule"):
        updated = ReportScheduleRepository(db).update(schedule.id, body.to_row(exclude_unset=True))
        db.commit()
    return updated.to_dict()


@router.get("/report-schedules/{schedule_id}/upcoming", summary="Projected due dates")
def upcoming_schedule_dates(
    count: int = Query(6, ge=1, le=MAX_UPCOMING),
    schedule: ReportSchedule = Depends(get_owned_schedule),
):
    dates = upcoming_due_dates(schedule.next_due_date, schedule.frequency, count, schedule.anchor_day)
    return {
        "scheduleId": schedule.id,
        "frequency": schedule.to_dict()['frequency'],
        "dueDates": [d.isoformat() for d in dates],
    }


@router.post(
    "/report-schedules/{schedule_id}/generate",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Schedule is not active"}},
    summary="Create the next report and advance the schedule",
)
def generate_scheduled_report(schedule: ReportSchedule = Depends(get_owned_schedule), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to generate report"):
        try:
            report = generate_report(db, schedule)
        except ScheduleNotActiveError as e:
            raise bad_request(str(e))
        db.commit()
    return {"report": report.to_dict(), "schedule": schedule.to_dict()}


# ============================================
# NEWS
# ============================================

@router.get("/news", responses={500: {"model": ErrorResponse}}, summary="Latest compliance headlines")
def compliance_news(user: User = Depends(get_current_user)):
    try:
        return NewsClient(get_config().news).fetch_articles()
    except NewsFetchError as e:
        logger.error("Compliance news unavailable: %s", e)
        raise server_error("Failed to fetch compliance news", e)
