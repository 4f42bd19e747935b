"""Jurisdiction browsing, the aggregated jurisdiction document and bulk import."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.auth import get_current_user, require_admin
from api.models import ErrorResponse, JurisdictionImport
from api.routes import bad_request, not_found, serialize, storage_errors
from database.connection import get_db
from database.jurisdiction_service import JurisdictionImportError, JurisdictionService, get_jurisdiction_service
from database.models import User
from database.repositories import DuplicateEntityError, JurisdictionRepository, ObligationRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["jurisdictions"])

JURISDICTION_NOT_FOUND = "Jurisdiction not found"


@router.get("/jurisdictions", summary="All jurisdictions ordered by name")
def list_jurisdictions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch jurisdictions"):
        return serialize(JurisdictionRepository(db).list_all())


@router.post(
    "/jurisdictions/import",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Duplicate name or unresolved reference"}},
    summary="Import a jurisdiction with all of its children (admin)",
)
def import_jurisdiction(
    body: JurisdictionImport,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    service: JurisdictionService = Depends(get_jurisdiction_service),
):
    with storage_errors(db, "Failed to import jurisdiction"):
        try:
            jurisdiction, counts = service.import_document(body.to_document())
        except DuplicateEntityError:
            db.rollback()
            raise bad_request(f"Jurisdiction already exists: {body.jurisdiction.name}")
        except JurisdictionImportError as e:
            db.rollback()
            raise bad_request(str(e))
        db.commit()
        document = service.get_document(jurisdiction.id)

    logger.info("Admin %s imported jurisdiction %s: %s", admin.id, jurisdiction.id, counts)
    return {"document": document, "created": counts}


@router.get(
    "/jurisdictions/{jurisdiction_id}",
    responses={404: {"model": ErrorResponse}},
    summary="Aggregated jurisdiction document",
)
def get_jurisdiction(
    jurisdiction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: JurisdictionService = Depends(get_jurisdiction_service),
):
    with storage_errors(db, "Failed to fetch jurisdiction details"):
        document = service.get_document(jurisdiction_id)
    if document is None:
        raise not_found(JURISDICTION_NOT_FOUND)
    return document


@router.get("/jurisdictions/{jurisdiction_id}/laws", summary="Laws of a jurisdiction")
def jurisdiction_laws(jurisdiction_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    repo = JurisdictionRepository(db)
    with storage_errors(db, "Failed to fetch laws"):
        if repo.get(jurisdiction_id) is None:
            raise not_found(JURISDICTION_NOT_FOUND)
        return serialize(repo.list_laws(jurisdiction_id))


@router.get("/jurisdictions/{jurisdiction_id}/obligations", summary="Obligations of a jurisdiction")
def jurisdiction_obligations(jurisdiction_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    repo = JurisdictionRepository(db)
    with storage_errors(db, "Failed to fetch obligations"):
        if repo.get(jurisdiction_id) is None:
            raise not_found(JURISDICTION_NOT_FOUND)
        return serialize(repo.list_obligations(jurisdiction_id))


@router.get("/obligations", summary="All active obligations")
def active_obligations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch obligations"):
        return serialize(ObligationRepository(db).list_active())
