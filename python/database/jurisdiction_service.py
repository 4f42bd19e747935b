"""
Jurisdiction Aggregation and Import Service

Builds the single "everything about jurisdiction X" document served by
``GET /api/jurisdictions/{id}`` and performs the bulk import used by both
``POST /api/jurisdictions/import`` and ``load_initial_data.py``.

Usage:
    # With FastAPI
    @router.get("/{jurisdiction_id}")
    def get_one(jurisdiction_id: int, service: JurisdictionService = Depends(get_jurisdiction_service)):
        return service.get_document(jurisdiction_id)

    # Standalone
    with db_provider.session_scope() as session:
        jurisdiction, counts = JurisdictionService(session).import_document(document)
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from database.connection import get_db
from database.models import (
    Jurisdiction,
    RegulatoryBody,
    Law,
    Obligation,
    TaxationRule,
    ReportingObligation,
    RegulatoryUpdate,
    JurisdictionTag,
    JurisdictionQueryKeyword,
)
from database.monitoring import query_timer
from database.repositories import JurisdictionRepository

logger = logging.getLogger(__name__)


class JurisdictionImportError(Exception):
    """Raised when an import document references something it does not define."""
    pass


# Document key -> (repository lookup, query timer operation), in output order.
# taxationRule is a single row or None; every other child is a list.
CHILD_COLLECTIONS = (
    ('regulatoryBodies', 'list_regulatory_bodies', 'jurisdiction.regulatory_bodies'),
    ('regulations', 'list_regulations', 'jurisdiction.regulations'),
    ('complianceRequirements', 'list_compliance_requirements', 'jurisdiction.compliance_requirements'),
    ('taxationRule', 'get_taxation_rule', 'jurisdiction.taxation_rule'),
    ('reportingObligations', 'list_reporting_obligations', 'jurisdiction.reporting_obligations'),
    ('regulatoryUpdates', 'list_regulatory_updates', 'jurisdiction.regulatory_updates'),
    ('tags', 'list_tags', 'jurisdiction.tags'),
    ('keywords', 'list_keywords', 'jurisdiction.keywords'),
)
ROOT_OPERATION = 'jurisdiction.root'


class JurisdictionService:
    """Read and write paths spanning a jurisdiction and all of its children."""

    def __init__(self, session: Session):
        self.session = session
        self._repo = JurisdictionRepository(session)

    def get_document(self, jurisdiction_id: int) -> Optional[Dict[str, Any]]:
        """
        Assemble the aggregated jurisdiction document.

        Returns None when the root does not exist; in that case no child
        table is queried. Child lists are ordered by id and empty lists are
        returned as ``[]``; a missing taxation rule is ``None``.
        """
        with query_timer(ROOT_OPERATION):
            jurisdiction = self._repo.get(jurisdiction_id)
        if jurisdiction is None:
            return None

        document: Dict[str, Any] = {'jurisdiction': jurisdiction.to_dict()}

        for key, lookup, operation in CHILD_COLLECTIONS:
            with query_timer(operation):
                result = getattr(self._repo, lookup)(jurisdiction_id)
            if isinstance(result, list):
                document[key] = [row.to_dict() for row in result]
            else:
                document[key] = result.to_dict() if result is not None else None

        return document

    def import_document(self, document: Dict[str, Any]) -> Tuple[Jurisdiction, Dict[str, int]]:
        """
        Create a jurisdiction and all of its children.

        ``document`` uses snake_case sections: ``jurisdiction``,
        ``regulatory_bodies``, ``laws`` (optionally naming their body via
        ``regulatory_body_name``), ``obligations`` (optionally naming their law
        via ``law_title``), ``taxation_rule``, ``reporting_obligations``,
        ``regulatory_updates``, ``tags`` and ``keywords``.

        Everything is flushed in the caller's transaction; the caller commits.

        Returns:
            Tuple of (jurisdiction, created row counts per section)

        Raises:
            DuplicateEntityError: If a jurisdiction with the same name exists
            JurisdictionImportError: On an unresolved body or law reference
        """
        jurisdiction = self._repo.create(document['jurisdiction'])
        jid = jurisdiction.id
        counts = {
            'regulatoryBodies': 0,
            'laws': 0,
            'obligations': 0,
            'taxationRule': 0,
            'reportingObligations': 0,
            'regulatoryUpdates': 0,
            'tags': 0,
            'keywords': 0,
        }

        bodies_by_name: Dict[str, int] = {}
        for body in document.get('regulatory_bodies') or []:
            row = self._repo.add_child(RegulatoryBody, jid, body)
            bodies_by_name[row.name] = row.id
            counts['regulatoryBodies'] += 1

        laws_by_title: Dict[str, int] = {}
        for law in document.get('laws') or []:
            law = dict(law)
            body_name = law.pop('regulatory_body_name', None)
            if body_name:
                if body_name not in bodies_by_name:
                    raise JurisdictionImportError(f"Unknown regulatory body: {body_name}")
                law['regulatory_body_id'] = bodies_by_name[body_name]
            row = self._repo.add_child(Law, jid, law)
            laws_by_title[row.title] = row.id
            counts['laws'] += 1

        for obligation in document.get('obligations') or []:
            obligation = dict(obligation)
            law_title = obligation.pop('law_title', None)
            if law_title:
                if law_title not in laws_by_title:
                    raise JurisdictionImportError(f"Unknown law: {law_title}")
                obligation['law_id'] = laws_by_title[law_title]
            self._repo.add_child(Obligation, jid, obligation)
            counts['obligations'] += 1

        if document.get('taxation_rule'):
            self._repo.add_child(TaxationRule, jid, document['taxation_rule'])
            counts['taxationRule'] = 1

        counts['reportingObligations'] = self._add_all(
            ReportingObligation, jid, document.get('reporting_obligations'))
        counts['regulatoryUpdates'] = self._add_all(
            RegulatoryUpdate, jid, document.get('regulatory_updates'))
        counts['tags'] = self._add_all(
            JurisdictionTag, jid, [{'tag': t} for t in document.get('tags') or []])
        counts['keywords'] = self._add_all(
            JurisdictionQueryKeyword, jid, [{'keyword': k} for k in document.get('keywords') or []])

        logger.info(f"Imported jurisdiction {jurisdiction.name} ({jid}): {counts}")
        return jurisdiction, counts

    def _add_all(self, child_model, jurisdiction_id: int, rows: Optional[List[Dict[str, Any]]]) -> int:
        created = 0
        for data in rows or []:
            self._repo.add_child(child_model, jurisdiction_id, data)
            created += 1
        return created


def get_jurisdiction_service(db: Session = Depends(get_db)) -> JurisdictionService:
    """FastAPI dependency for the jurisdiction service bound to the request session."""
    return JurisdictionService(db)
