"""
Session authentication for the Compliance Tracker API

Passwords are stored as ``<hex scrypt hash>.<hex salt>``. The session cookie
(signed by Starlette's SessionMiddleware) carries only the user id, which is
resolved back to a User row on every request through the dependencies below.

Dependency ladder used by the routes:
    get_optional_user -> get_current_user (401) -> require_admin (403)
Ownership checks for single resources go through ensure_owner_or_admin.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from api.middleware import request_context
from database.connection import get_db
from database.models import User
from database.repositories import UserRepository
from security_logger import get_security_logger

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

# scrypt cost parameters; changing them invalidates stored hashes
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 32
SALT_BYTES = 16

NOT_AUTHENTICATED = "Not authenticated"
FORBIDDEN = "Forbidden"
INVALID_CREDENTIALS = "Incorrect username or password"


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    """Constant-time comparison of a supplied password against a stored hash."""
    hashed, sep, salt = stored.partition(".")
    if not sep or not hashed or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(_scrypt(supplied, salt), expected)


def authenticate(db: Session, username: str, password: str, request: Optional[Request] = None) -> Optional[User]:
    """
    Resolve credentials to a user.

    Unknown user and wrong password look the same to the caller; the real
    cause is written to the security log only.
    """
    user = UserRepository(db).get_by_username(username)
    if user is None:
        reason = "UNKNOWN_USER"
    elif not verify_password(password, user.password):
        reason = "BAD_PASSWORD"
    else:
        return user

    context = request_context(request) if request is not None else None
    get_security_logger().log_login_failure(username, reason, context)
    return None


def login_user(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_user(request: Request) -> None:
    request.session.clear()


# ============================================
# DEPENDENCIES
# ============================================

def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """The session's user, or None for anonymous callers.

    A session pointing at a user that no longer exists is cleared.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None

    user = UserRepository(db).get(user_id)
    if user is None:
        logger.info("Dropping session for missing user id %s", user_id)
        request.session.clear()
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
    return user


def require_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        get_security_logger().log_access_denied("admin", request.url.path, request_context(request, user.id))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)
    return user


def is_owner_or_admin(user: User, owner_id: Any) -> bool:
    return user.is_admin or user.id == owner_id


def ensure_owner_or_admin(
    request: Request,
    user: User,
    owner_id: Any,
    resource: str,
    resource_id: Any,
) -> None:
    """
    Raise 403 unless ``user`` owns the resource or is an admin.

    Raises:
        HTTPException: 403 Forbidden
    """
    if is_owner_or_admin(user, owner_id):
        return
    get_security_logger().log_access_denied(resource, resource_id, request_context(request, user.id))
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)
