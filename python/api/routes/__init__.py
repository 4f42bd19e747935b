"""
API route modules.

Each module exposes an APIRouter mounted by api.server. Handlers are plain
``def`` functions (run on FastAPI's threadpool), own their transaction
(``db.commit()``) and map storage failures to a 500 via ``storage_errors``.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config_manager import get_config
from database.models import Jurisdiction
from log_utils import sanitize_for_logging

logger = logging.getLogger(__name__)


def server_error(message: str, exc: Exception) -> HTTPException:
    """500 carrying ``message``; the underlying error is added outside production."""
    if get_config().is_production:
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": message, "error": str(exc)},
    )


@contextmanager
def storage_errors(db: Session, message: str):
    """Roll back and turn database failures inside the block into a 500."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s: %s", message, sanitize_for_logging(str(e)))
        raise server_error(message, e) from e


def not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def require_jurisdiction(db: Session, jurisdiction_id: Optional[int]) -> None:
    """404 when a referenced jurisdiction id does not exist; None is allowed."""
    if jurisdiction_id is not None and db.get(Jurisdiction, jurisdiction_id) is None:
        raise not_found("Jurisdiction not found")


def serialize(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    return [row.to_dict() for row in rows]
