"""
Report schedule recurrence.

Due dates advance by calendar periods. Month-based frequencies keep the
schedule's anchor day (the day of month it was created or re-dated on),
clamping to the last day of a shorter month: a schedule anchored on the
31st runs Jan 31, Feb 28, Mar 31. Ad-hoc schedules do not recur:
generating their report completes the schedule.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from database.models import (
    ComplianceReport,
    ComplianceReportType,
    ReportFrequency,
    ReportSchedule,
    ReportStatus,
    ScheduleStatus,
)

logger = logging.getLogger(__name__)

MONTHS_PER_PERIOD = {
    ReportFrequency.MONTHLY: 1,
    ReportFrequency.QUARTERLY: 3,
    ReportFrequency.SEMI_ANNUALLY: 6,
    ReportFrequency.ANNUALLY: 12,
}

DAYS_PER_PERIOD = {
    ReportFrequency.DAILY: 1,
    ReportFrequency.WEEKLY: 7,
}

MAX_UPCOMING = 24


class ScheduleNotActiveError(Exception):
    """Raised when generating a report from a paused or completed schedule."""
    pass


def add_months(start: date, months: int, anchor_day: Optional[int] = None) -> date:
    """``start`` moved by ``months``, on ``anchor_day`` (default start.day) clamped to the month end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor_day or start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance_due_date(due: date, frequency: ReportFrequency, anchor_day: Optional[int] = None) -> Optional[date]:
    """Next due date after ``due``, or None for ad-hoc schedules."""
    frequency = ReportFrequency(frequency)
    if frequency in DAYS_PER_PERIOD:
        return due + timedelta(days=DAYS_PER_PERIOD[frequency])
    if frequency in MONTHS_PER_PERIOD:
        return add_months(due, MONTHS_PER_PERIOD[frequency], anchor_day)
    return None


def upcoming_due_dates(
    start: date,
    frequency: ReportFrequency,
    count: int,
    anchor_day: Optional[int] = None,
) -> List[date]:
    """
    Project ``count`` due dates starting with ``start`` itself.

    Uses the same step as ``generate_report``, so the projection is exactly
    the sequence of reports the schedule will produce.
    """
    count = max(0, min(count, MAX_UPCOMING))
    frequency = ReportFrequency(frequency)
    if count == 0:
        return []
    if frequency == ReportFrequency.AD_HOC:
        return [start]

    anchor_day = anchor_day or start.day
    dates = [start]
    while len(dates) < count:
        dates.append(advance_due_date(dates[-1], frequency, anchor_day))
    return dates


def generate_report(session: Session, schedule: ReportSchedule) -> ComplianceReport:
    """
    Create the draft report due at the schedule's next due date and move
    the schedule forward one period.

    Both writes are flushed in the caller's transaction.

    Raises:
        ScheduleNotActiveError: If the schedule is paused or completed
    """
    if ScheduleStatus(schedule.status) != ScheduleStatus.ACTIVE:
        raise ScheduleNotActiveError(f"Schedule {schedule.id} is {ScheduleStatus(schedule.status).value}")

    report_type = session.get(ComplianceReportType, schedule.report_type_id)
    type_name = report_type.name if report_type is not None else "Report"
    due = schedule.next_due_date
    if schedule.anchor_day is None:
        schedule.anchor_day = due.day

    report = ComplianceReport(
        report_type_id=schedule.report_type_id,
        user_id=schedule.user_id,
        entity_type=schedule.entity_type,
        entity_id=schedule.entity_id,
        title=f"{type_name} - {due.isoformat()}",
        status=ReportStatus.DRAFT,
        due_date=due,
    )
    session.add(report)

    next_due = advance_due_date(due, schedule.frequency, schedule.anchor_day)
    if next_due is None:
        schedule.status = ScheduleStatus.COMPLETED
    else:
        schedule.next_due_date = next_due

    session.flush()
    logger.info("Schedule %s generated report %s due %s", schedule.id, report.id, due)
    return report
