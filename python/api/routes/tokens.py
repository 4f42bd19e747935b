"""
Token registration routes.

Owners manage their token registrations and upload supporting documents.
Verifications, risk assessments and jurisdiction approvals are reviewer
decisions: anyone who can see the token may read them, only admins record
them.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from api.auth import ensure_owner_or_admin, get_current_user, require_admin
from api.models import (
    ErrorResponse,
    TokenDocumentCreate,
    TokenJurisdictionApprovalCreate,
    TokenRegistrationCreate,
    TokenRegistrationUpdate,
    TokenRiskAssessmentCreate,
    TokenVerificationCreate,
)
from api.routes import bad_request, not_found, require_jurisdiction, serialize, storage_errors
from database.connection import get_db
from database.models import TokenCategory, TokenRegistration, User
from database.repositories import TokenRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tokens"])

TOKEN_NOT_FOUND = "Token registration not found"


def get_owned_token(
    token_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TokenRegistration:
    token = TokenRepository(db).get(token_id)
    if token is None:
        raise not_found(TOKEN_NOT_FOUND)
    ensure_owner_or_admin(request, user, token.user_id, "token", token_id)
    return token


@router.get("/tokens", summary="Caller's token registrations")
def list_tokens(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch token registrations"):
        return serialize(TokenRepository(db).list_by_user(user.id))


@router.post(
    "/tokens",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Register a token",
)
def create_token(body: TokenRegistrationCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create token registration"):
        token = TokenRepository(db).create(user.id, body.to_row())
        db.commit()
    logger.info("User %s registered token %s (%s)", user.id, token.id, token.token_symbol)
    return token.to_dict()


# Admin listings are declared before /tokens/{token_id} so "admin" is not
# parsed as an id.

@router.get("/tokens/admin", summary="All token registrations (admin)")
def list_all_tokens(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch token registrations"):
        return serialize(TokenRepository(db).list_all())


@router.get(
    "/tokens/admin/category/{category}",
    responses={400: {"model": ErrorResponse, "description": "Unknown category"}},
    summary="Token registrations in one category (admin)",
)
def list_tokens_by_category(category: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        token_category = TokenCategory(category)
    except ValueError:
        raise bad_request(f"Invalid token category: {category}")

    with storage_errors(db, "Failed to fetch token registrations"):
        return serialize(TokenRepository(db).list_by_category(token_category))


@router.get("/tokens/{token_id}", responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
def get_token(token: TokenRegistration = Depends(get_owned_token)):
    return token.to_dict()


@router.patch("/tokens/{token_id}", summary="Update token registration details")
def update_token(
    body: TokenRegistrationUpdate,
    token: TokenRegistration = Depends(get_owned_token),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to update token registration"):
        updated = TokenRepository(db).update(token.id, body.to_row(exclude_unset=True))
        db.commit()
    return updated.to_dict()


# ============================================
# DOCUMENTS
# ============================================

@router.get("/tokens/{token_id}/documents")
def list_token_documents(token: TokenRegistration = Depends(get_owned_token), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch token documents"):
        return serialize(TokenRepository(db).list_documents(token.id))


@router.post("/tokens/{token_id}/documents", status_code=status.HTTP_201_CREATED)
def create_token_document(
    body: TokenDocumentCreate,
    token: TokenRegistration = Depends(get_owned_token),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to add token document"):
        document = TokenRepository(db).add_document(token.id, user.id, body.to_row())
        db.commit()
    return document.to_dict()


# ============================================
# REVIEWER DECISIONS
# ============================================

@router.get("/tokens/{token_id}/verifications")
def list_token_verifications(token: TokenRegistration = Depends(get_owned_token), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch token verifications"):
        return serialize(TokenRepository(db).list_verifications(token.id))


@router.post("/tokens/{token_id}/verifications", status_code=status.HTTP_201_CREATED)
def create_token_verification(
    body: TokenVerificationCreate,
    admin: User = Depends(require_admin),
    token: TokenRegistration = Depends(get_owned_token),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to record token verification"):
        verification = TokenRepository(db).add_verification(token.id, admin.id, body.to_row())
        db.commit()
    logger.info("Admin %s recorded verification '%s' on token %s", admin.id, body.verification_status, token.id)
    return verification.to_dict()


@router.get("/tokens/{token_id}/risk-assessments")
def list_token_risk_assessments(token: TokenRegistration = Depends(get_owned_token), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch risk assessments"):
        return serialize(TokenRepository(db).list_risk_assessments(token.id))


@router.post("/tokens/{token_id}/risk-assessments", status_code=status.HTTP_201_CREATED)
def create_token_risk_assessment(
    body: TokenRiskAssessmentCreate,
    admin: User = Depends(require_admin),
    token: TokenRegistration = Depends(get_owned_token),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to record risk assessment"):
        assessment = TokenRepository(db).add_risk_assessment(token.id, admin.id, body.to_row())
        db.commit()
    return assessment.to_dict()


@router.get("/tokens/{token_id}/jurisdiction-approvals")
def list_token_jurisdiction_approvals(token: TokenRegistration = Depends(get_owned_token), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch jurisdiction approvals"):
        return serialize(TokenRepository(db).list_jurisdiction_approvals(token.id))


@router.post(
    "/tokens/{token_id}/jurisdiction-approvals",
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
def create_token_jurisdiction_approval(
    body: TokenJurisdictionApprovalCreate,
    admin: User = Depends(require_admin),
    token: TokenRegistration = Depends(get_owned_token),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to record jurisdiction approval"):
        require_jurisdiction(db, body.jurisdiction_id)
        approval = TokenRepository(db).add_jurisdiction_approval(token.id, body.to_row())
        db.commit()
    return approval.to_dict()
