"""Admin-only routes: user management and registration listings."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.auth import require_admin
from api.models import AdminUserUpdate, ErrorResponse
from api.routes import not_found, serialize, storage_errors
from database.connection import get_db
from database.models import RegistrationType, User
from database.repositories import BusinessRegistrationRepository, RegistrationRepository, UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Listing path -> business registration type
ADMIN_LISTINGS = {
    'exchanges': 'exchange',
    'stablecoins': 'stablecoin',
    'defi': 'defi',
    'nft': 'nft',
    'funds': 'fund',
}


@router.get("/users", summary="All users")
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch users"):
        return serialize(UserRepository(db).list_all())


@router.patch("/users/{user_id}", responses={404: {"model": ErrorResponse}}, summary="Grant or revoke admin")
def update_user(user_id: int, body: AdminUserUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    repo = UserRepository(db)
    with storage_errors(db, "Failed to update user"):
        if repo.get(user_id) is None:
            raise not_found("User not found")
        updated = repo.set_admin(user_id, body.is_admin)
        db.commit()
    logger.info("Admin %s set is_admin=%s on user %s", admin.id, body.is_admin, user_id)
    return updated.to_dict()


@router.get("/registrations", summary="Generalized registrations, optionally filtered by type")
def list_registrations(
    type: Optional[RegistrationType] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to fetch registrations"):
        return serialize(RegistrationRepository(db).list_all(type))


def _add_listing_route(path: str, registration_type: str) -> None:
    def list_type(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
        with storage_errors(db, f"Failed to fetch {path}"):
            return serialize(BusinessRegistrationRepository(db, registration_type).list_all())

    router.add_api_route(
        f"/{path}", list_type,
        methods=["GET"], summary=f"All {path} registrations",
        name=f"admin_list_{path}",
    )


for _path, _type in ADMIN_LISTINGS.items():
    _add_listing_route(_path, _type)
