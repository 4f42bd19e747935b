"""
Legacy-to-enhanced jurisdiction data copy.

Copies legacy ``regulations`` rows into ``laws`` and legacy
``compliance_requirements`` rows into ``obligations``. Each copied row
remembers its source through ``legacy_regulation_id`` /
``legacy_requirement_id`` (both unique), and rows already copied are
skipped, so running the copy twice creates nothing the second time.

The legacy tables are left untouched.
"""

import logging
from dataclasses import dataclass
from typing import Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.models import ComplianceRequirement, Law, Obligation, Regulation

logger = logging.getLogger(__name__)

# Law type used when a legacy regulation carries none
DEFAULT_LAW_TYPE = 'Generic'


@dataclass
class MigrationResult:
    """Counts produced by one migration run."""
    laws_created: int = 0
    laws_skipped: int = 0
    obligations_created: int = 0
    obligations_skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'laws_created': self.laws_created,
            'laws_skipped': self.laws_skipped,
            'obligations_created': self.obligations_created,
            'obligations_skipped': self.obligations_skipped,
        }


def migrate_regulations(session: Session, result: MigrationResult) -> None:
    migrated = set(session.execute(
        select(Law.legacy_regulation_id).where(Law.legacy_regulation_id.is_not(None))
    ).scalars())

    for regulation in session.execute(select(Regulation).order_by(Regulation.id)).scalars():
        if regulation.id in migrated:
            result.laws_skipped += 1
            continue
        session.add(Law(
            jurisdiction_id=regulation.jurisdiction_id,
            title=regulation.title,
            law_type=regulation.type or DEFAULT_LAW_TYPE,
            description=regulation.description,
            source_url=regulation.compliance_url,
            effective_date=regulation.effective_date,
            last_updated=regulation.last_updated,
            legacy_regulation_id=regulation.id,
        ))
        result.laws_created += 1

    session.flush()


def migrate_compliance_requirements(session: Session, result: MigrationResult) -> None:
    migrated = set(session.execute(
        select(Obligation.legacy_requirement_id).where(Obligation.legacy_requirement_id.is_not(None))
    ).scalars())

    query = select(ComplianceRequirement).order_by(ComplianceRequirement.id)
    for requirement in session.execute(query).scalars():
        if requirement.id in migrated:
            result.obligations_skipped += 1
            continue
        session.add(Obligation(
            jurisdiction_id=requirement.jurisdiction_id,
            title=requirement.requirement_type,
            description=requirement.summary,
            obligation_type=requirement.requirement_type,
            legacy_requirement_id=requirement.id,
        ))
        result.obligations_created += 1

    session.flush()


def migrate_legacy_data(session: Session) -> MigrationResult:
    """
    Copy every not-yet-migrated legacy row into the enhanced tables.

    Runs in the caller's transaction; the caller commits.
    """
    result = MigrationResult()
    migrate_regulations(session, result)
    migrate_compliance_requirements(session, result)
    logger.info("Legacy migration finished: %s", result.to_dict())
    return result
