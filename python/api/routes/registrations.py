"""
Registration routes.

Typed business registrations live under ``/api/{type}/...`` with one set
of routes per type, so each gets its own validated body in the OpenAPI
schema. Generalized, versioned registrations live under
``/api/registrations``.
"""

import logging
from typing import Type

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from api.auth import ensure_owner_or_admin, get_current_user
from api.models import ApiModel, ErrorResponse, MessageResponse, RegistrationCreate, RegistrationUpdate
from api.registration_models import REGISTRATION_VALIDATORS
from api.routes import not_found, require_jurisdiction, serialize, storage_errors
from database.connection import get_db
from database.models import Registration, User
from database.repositories import BusinessRegistrationRepository, RegistrationRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["registrations"])

REGISTRATION_NOT_FOUND = "Registration not found"

# Display names used in error messages
TYPE_LABELS = {
    'exchange': "exchange",
    'stablecoin': "stablecoin",
    'defi': "DeFi protocol",
    'nft': "NFT marketplace",
    'fund': "crypto fund",
}


def _add_business_routes(registration_type: str, validator: Type[ApiModel]) -> None:
    label = TYPE_LABELS[registration_type]

    def create(body: validator, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
        with storage_errors(db, f"Failed to register {label}"):
            require_jurisdiction(db, getattr(body, "jurisdiction_id", None))
            row = BusinessRegistrationRepository(db, registration_type).create(user.id, body.to_row())
            db.commit()
        logger.info("User %s registered %s %s", user.id, registration_type, row.id)
        return row.to_dict()

    def list_own(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
        with storage_errors(db, f"Failed to fetch {label} registrations"):
            return serialize(BusinessRegistrationRepository(db, registration_type).list_by_user(user.id))

    def get_one(
        registration_id: int,
        request: Request,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        with storage_errors(db, f"Failed to fetch {label} registration"):
            row = BusinessRegistrationRepository(db, registration_type).get(registration_id)
        if row is None:
            raise not_found(REGISTRATION_NOT_FOUND)
        ensure_owner_or_admin(request, user, row.user_id, registration_type, registration_id)
        return row.to_dict()

    router.add_api_route(
        f"/{registration_type}/register", create,
        methods=["POST"], status_code=status.HTTP_201_CREATED,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        summary=f"Register a {label}",
        name=f"register_{registration_type}",
    )
    router.add_api_route(
        f"/{registration_type}/registrations", list_own,
        methods=["GET"], summary=f"Caller's {label} registrations",
        name=f"list_{registration_type}_registrations",
    )
    router.add_api_route(
        f"/{registration_type}/registrations/{{registration_id}}", get_one,
        methods=["GET"], responses={404: {"model": ErrorResponse}},
        summary=f"One {label} registration (owner or admin)",
        name=f"get_{registration_type}_registration",
    )


for _type, _validator in REGISTRATION_VALIDATORS.items():
    _add_business_routes(_type, _validator)


# ============================================
# GENERALIZED REGISTRATIONS
# ============================================

def get_owned_registration(
    registration_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Registration:
    """Live registration visible to the caller: 404 when missing, 403 when not owned."""
    registration = RegistrationRepository(db).get(registration_id)
    if registration is None:
        raise not_found(REGISTRATION_NOT_FOUND)
    ensure_owner_or_admin(request, user, registration.user_id, "registration", registration_id)
    return registration


@router.post("/registrations", status_code=status.HTTP_201_CREATED, summary="Create a versioned registration")
def create_registration(body: RegistrationCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to create registration"):
        registration = RegistrationRepository(db).create(user.id, body.to_row())
        db.commit()
    return registration.to_dict()


@router.get("/registrations/{registration_id}", summary="One registration (owner or admin)")
def get_registration(registration: Registration = Depends(get_owned_registration)):
    return registration.to_dict()


@router.patch("/registrations/{registration_id}", summary="Update a registration, bumping its version")
def update_registration(
    body: RegistrationUpdate,
    registration: Registration = Depends(get_owned_registration),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to update registration"):
        updated = RegistrationRepository(db).update(registration.id, body.to_row(exclude_unset=True), user_id=user.id)
        db.commit()
    return updated.to_dict()


@router.delete("/registrations/{registration_id}", response_model=MessageResponse, summary="Soft-delete a registration")
def delete_registration(
    registration: Registration = Depends(get_owned_registration),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to delete registration"):
        RegistrationRepository(db).soft_delete(registration.id, user_id=user.id)
        db.commit()
    return {"message": "Registration deleted"}


@router.get("/registrations/{registration_id}/versions", summary="Version history, newest first")
def registration_versions(registration: Registration = Depends(get_owned_registration), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch registration versions"):
        return serialize(RegistrationRepository(db).list_versions(registration.id))


@router.get("/registrations/{registration_id}/audit-logs", summary="Audit trail, newest first")
def registration_audit_logs(registration: Registration = Depends(get_owned_registration), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch audit logs"):
        return serialize(RegistrationRepository(db).list_audit_logs(registration.id))
