"""Jurisdiction compliance checklists, per-user progress and jurisdiction subscriptions."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from api.auth import ensure_owner_or_admin, get_current_user, require_admin
from api.models import (
    ChecklistImport,
    ChecklistProgressUpdate,
    ErrorResponse,
    MessageResponse,
    UserJurisdictionCreate,
)
from api.routes import bad_request, not_found, require_jurisdiction, storage_errors
from database.connection import get_db
from database.models import ChecklistItem, ChecklistStatus, Jurisdiction, User, UserChecklistProgress
from database.repositories import ChecklistRepository, DuplicateEntityError, UserJurisdictionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checklists"])

CHECKLIST_ITEM_NOT_FOUND = "Checklist item not found"
SUBSCRIPTION_NOT_FOUND = "Subscription not found"


def category_document(category) -> Dict[str, Any]:
    document = category.to_dict()
    document["items"] = [item.to_dict() for item in category.items]
    return document


def progress_document(item: ChecklistItem, progress: Optional[UserChecklistProgress]) -> Dict[str, Any]:
    """One checklist row as the progress view shows it; untouched items read as not started."""
    return {
        "itemId": item.id,
        "categoryId": item.category_id,
        "task": item.task,
        "responsible": item.responsible,
        "sequence": item.sequence,
        "status": ChecklistStatus(progress.status).value if progress else ChecklistStatus.NOT_STARTED.value,
        "notes": progress.notes if progress else None,
        "completedAt": progress.completed_at.isoformat() if progress and progress.completed_at else None,
    }


def subscription_document(subscription, jurisdiction: Jurisdiction) -> Dict[str, Any]:
    document = subscription.to_dict()
    document["jurisdictionName"] = jurisdiction.name
    document["jurisdictionRegion"] = jurisdiction.region
    document["jurisdictionRiskLevel"] = jurisdiction.risk_level
    return document


# ============================================
# CHECKLISTS
# ============================================

@router.get(
    "/jurisdictions/{jurisdiction_id}/checklists",
    responses={404: {"model": ErrorResponse}},
    summary="Checklist categories of a jurisdiction with their items",
)
def jurisdiction_checklists(jurisdiction_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch checklists"):
        require_jurisdiction(db, jurisdiction_id)
        return [category_document(c) for c in ChecklistRepository(db).list_categories(jurisdiction_id)]


@router.post(
    "/jurisdictions/{jurisdiction_id}/checklists",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Load a jurisdiction's checklist (admin)",
)
def import_checklist(
    jurisdiction_id: int,
    body: ChecklistImport,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    repo = ChecklistRepository(db)
    with storage_errors(db, "Failed to import checklist"):
        require_jurisdiction(db, jurisdiction_id)
        if repo.has_checklist(jurisdiction_id):
            raise bad_request("Checklist already exists for this jurisdiction")
        counts = repo.add_checklist(jurisdiction_id, body.to_document())
        db.commit()
        categories = [category_document(c) for c in repo.list_categories(jurisdiction_id)]

    logger.info("Admin %s loaded checklist for jurisdiction %s: %s", admin.id, jurisdiction_id, counts)
    return {"categories": categories, "created": counts}


@router.get(
    "/jurisdictions/{jurisdiction_id}/checklist-progress",
    responses={404: {"model": ErrorResponse}},
    summary="The caller's status on every checklist item of a jurisdiction",
)
def checklist_progress(jurisdiction_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch checklist progress"):
        require_jurisdiction(db, jurisdiction_id)
        rows = ChecklistRepository(db).list_progress(user.id, jurisdiction_id)
        return [progress_document(item, progress) for item, progress in rows]


@router.post(
    "/checklist-items/{item_id}/progress",
    responses={404: {"model": ErrorResponse}},
    summary="Set the caller's status and notes on a checklist item",
)
def update_checklist_progress(
    item_id: int,
    body: ChecklistProgressUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = ChecklistRepository(db)
    with storage_errors(db, "Failed to update checklist progress"):
        item = repo.get_item(item_id)
        if item is None:
            raise not_found(CHECKLIST_ITEM_NOT_FOUND)
        progress = repo.set_progress(user.id, item.id, body.status, body.notes)
        db.commit()
    return progress.to_dict()


# ============================================
# SUBSCRIPTIONS
# ============================================

@router.get("/user/jurisdictions", summary="Jurisdictions the caller follows")
def list_subscriptions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch jurisdiction subscriptions"):
        rows = UserJurisdictionRepository(db).list_by_user(user.id)
        return [subscription_document(subscription, jurisdiction) for subscription, jurisdiction in rows]


@router.post(
    "/user/jurisdictions",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Follow a jurisdiction",
)
def create_subscription(body: UserJurisdictionCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to subscribe to jurisdiction"):
        require_jurisdiction(db, body.jurisdiction_id)
        try:
            subscription = UserJurisdictionRepository(db).create(user.id, body.to_row())
        except DuplicateEntityError:
            raise bad_request("Already subscribed to this jurisdiction")
        db.commit()
        jurisdiction = db.get(Jurisdiction, subscription.jurisdiction_id)
    return subscription_document(subscription, jurisdiction)


@router.delete(
    "/user/jurisdictions/{subscription_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Stop following a jurisdiction",
)
def delete_subscription(
    subscription_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = UserJurisdictionRepository(db)
    with storage_errors(db, "Failed to unsubscribe from jurisdiction"):
        subscription = repo.get(subscription_id)
        if subscription is None:
            raise not_found(SUBSCRIPTION_NOT_FOUND)
        ensure_owner_or_admin(request, user, subscription.user_id, "jurisdiction subscription", subscription_id)
        repo.delete(subscription.id)
        db.commit()
    return {"message": "Unsubscribed from jurisdiction"}
