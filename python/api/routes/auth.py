"""Account routes: register, login, logout and the caller's own data."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi import HTTPException
from sqlalchemy.orm import Session

from api.auth import (
    INVALID_CREDENTIALS,
    authenticate,
    ensure_owner_or_admin,
    get_current_user,
    hash_password,
    login_user,
    logout_user,
)
from api.models import ErrorResponse, KycUpdateRequest, LoginRequest, MessageResponse, RegisterRequest
from api.routes import bad_request, serialize, storage_errors
from database.connection import get_db
from database.models import User
from database.repositories import (
    DuplicateEntityError,
    PolicyRepository,
    RegistrationRepository,
    TransactionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid input or username taken"}},
    summary="Create an account and log in",
)
def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    data = body.to_row()
    data['password'] = hash_password(body.password)

    with storage_errors(db, "Registration failed"):
        try:
            user = UserRepository(db).create(data)
        except DuplicateEntityError:
            raise bad_request("Username already exists")
        db.commit()

    login_user(request, user)
    logger.info("Registered user %s", user.id)
    return user.to_dict()


@router.post(
    "/login",
    responses={401: {"model": ErrorResponse, "description": "Bad credentials"}},
    summary="Log in with username and password",
)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = authenticate(db, body.username, body.password, request)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    login_user(request, user)
    return user.to_dict()


@router.post("/logout", response_model=MessageResponse, summary="End the session")
def logout(request: Request):
    logout_user(request)
    return {"message": "Logged out"}


@router.get("/user", summary="Current user")
def current_user(user: User = Depends(get_current_user)):
    return user.to_dict()


@router.post("/user/kyc", summary="Submit KYC details")
def update_kyc(body: KycUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to update KYC details"):
        updated = UserRepository(db).update_kyc(user.id, body.wallet_address, body.compliance_data)
        db.commit()
    return updated.to_dict()


@router.get("/user/registrations", summary="Caller's generalized registrations")
def my_registrations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch registrations"):
        return serialize(RegistrationRepository(db).list_by_user(user.id))


@router.get("/user/{user_id}/policies", summary="Policies created by a user (self or admin)")
def user_policies(
    user_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_owner_or_admin(request, user, user_id, "user_policies", user_id)
    with storage_errors(db, "Failed to fetch policies"):
        return serialize(PolicyRepository(db).list_by_user(user_id))


@router.get("/transactions", summary="Caller's wallet transactions")
def transactions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_errors(db, "Failed to fetch transactions"):
        return serialize(TransactionRepository(db).list_by_parent(user.id))
