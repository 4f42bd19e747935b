"""
Policy framework routes.

Every policy-scoped route resolves the policy through ``get_owned_policy``:
401 for anonymous callers, then 404 for a missing policy, then 403 unless
the caller created it or is an admin. Body validation (400) comes last.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from api.auth import ensure_owner_or_admin, get_current_user
from api.models import (
    ErrorResponse,
    PolicyApprovalCreate,
    PolicyCreate,
    PolicyObligationMappingCreate,
    PolicyTagCreate,
    PolicyUpdate,
    PolicyVersionCreate,
)
from api.routes import bad_request, not_found, require_jurisdiction, serialize, storage_errors
from database.connection import get_db
from database.models import Obligation, Policy, User
from database.repositories import DuplicateEntityError, PolicyRepository
from policy_catalog import get_policy_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["policies"])

POLICY_NOT_FOUND = "Policy not found"


def get_owned_policy(
    policy_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Policy:
    policy = PolicyRepository(db).get(policy_id)
    if policy is None:
        raise not_found(POLICY_NOT_FOUND)
    ensure_owner_or_admin(request, user, policy.created_by, "policy", policy_id)
    return policy


@router.get("/policies", summary="Caller's policies (all policies for admins)")
def list_policies(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    repo = PolicyRepository(db)
    with storage_errors(db, "Failed to fetch policies"):
        policies = repo.list_all() if user.is_admin else repo.list_by_user(user.id)
    return serialize(policies)


@router.post(
    "/policies",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Create a policy",
)
def create_policy(body: PolicyCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create policy"):
        require_jurisdiction(db, body.jurisdiction_id)
        policy = PolicyRepository(db).create(user.id, body.to_row())
        db.commit()
    logger.info("User %s created policy %s", user.id, policy.id)
    return policy.to_dict()


@router.get("/policies/{policy_id}", responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
def get_policy(policy: Policy = Depends(get_owned_policy)):
    return policy.to_dict()


@router.put("/policies/{policy_id}", summary="Update policy fields", responses={404: {"model": ErrorResponse}})
def update_policy(body: PolicyUpdate, policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to update policy"):
        require_jurisdiction(db, body.jurisdiction_id)
        updated = PolicyRepository(db).update(policy.id, body.to_row(exclude_unset=True))
        db.commit()
    return updated.to_dict()


# ============================================
# VERSIONS
# ============================================

@router.get("/policies/{policy_id}/versions")
def list_policy_versions(policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch policy versions"):
        return serialize(PolicyRepository(db).list_versions(policy.id))


@router.post("/policies/{policy_id}/versions", status_code=status.HTTP_201_CREATED)
def create_policy_version(
    body: PolicyVersionCreate,
    policy: Policy = Depends(get_owned_policy),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to create policy version"):
        try:
            version = PolicyRepository(db).add_version(policy.id, user.id, body.to_row())
        except DuplicateEntityError:
            raise bad_request(f"Version {body.version} already exists for this policy")
        db.commit()
    return version.to_dict()


# ============================================
# TAGS
# ============================================

@router.get("/policies/{policy_id}/tags")
def list_policy_tags(policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch policy tags"):
        return serialize(PolicyRepository(db).list_tags(policy.id))


@router.post("/policies/{policy_id}/tags", status_code=status.HTTP_201_CREATED)
def create_policy_tag(body: PolicyTagCreate, policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to add policy tag"):
        tag = PolicyRepository(db).add_tag(policy.id, body.to_row())
        db.commit()
    return tag.to_dict()


# ============================================
# OBLIGATION MAPPINGS
# ============================================

@router.get("/policies/{policy_id}/obligations")
def list_policy_obligations(policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch obligation mappings"):
        return serialize(PolicyRepository(db).list_obligation_mappings(policy.id))


@router.post(
    "/policies/{policy_id}/obligations",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def create_policy_obligation(
    body: PolicyObligationMappingCreate,
    policy: Policy = Depends(get_owned_policy),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to map obligation"):
        if db.get(Obligation, body.obligation_id) is None:
            raise not_found("Obligation not found")
        try:
            mapping = PolicyRepository(db).add_obligation_mapping(policy.id, body.to_row())
        except DuplicateEntityError:
            raise bad_request("Obligation is already mapped to this policy")
        db.commit()
    return mapping.to_dict()


# ============================================
# APPROVALS
# ============================================

@router.get("/policies/{policy_id}/approvals")
def list_policy_approvals(policy: Policy = Depends(get_owned_policy), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch policy approvals"):
        return serialize(PolicyRepository(db).list_approvals(policy.id))


@router.post("/policies/{policy_id}/approvals", status_code=status.HTTP_201_CREATED)
def create_policy_approval(
    body: PolicyApprovalCreate,
    policy: Policy = Depends(get_owned_policy),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record an approval; approved/rejected also move the policy status in the same commit."""
    with storage_errors(db, "Failed to record policy approval"):
        approval = PolicyRepository(db).add_approval(policy.id, user.id, body.to_row())
        db.commit()
    return approval.to_dict()


# ============================================
# TEMPLATE CATALOG
# ============================================

@router.get("/policy-templates", summary="Starter policy templates")
def list_policy_templates(category: Optional[str] = None, user: User = Depends(get_current_user)):
    return get_policy_catalog().list_templates(category)


@router.get("/policy-templates/categories", summary="Template categories with counts")
def list_policy_template_categories(user: User = Depends(get_current_user)):
    return get_policy_catalog().list_categories()


@router.get("/policy-templates/{template_id}", responses={404: {"model": ErrorResponse}})
def get_policy_template(template_id: str, user: User = Depends(get_current_user)):
    template = get_policy_catalog().get_template(template_id)
    if template is None:
        raise not_found("Template not found")
    return template
