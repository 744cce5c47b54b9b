"""Helpers compartidos por los endpoints."""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import Request
from sqlalchemy.orm import Session

from ..errors import InternalError

logger = logging.getLogger(__name__)


def fail_internal(request: Request, db: Session, exc: Exception) -> NoReturn:
    """Rollback + log + 500 internal_error.

    El mensaje de la excepción solo se devuelve con TRACKER_DEBUG_ERRORS=1.
    """
    logger.exception(
        "DB error in %s err=%s",
        request.url.path,
        type(exc).__name__,
    )
    db.rollback()
    detail = None
    if request.app.state.settings.debug_errors:
        detail = f"{type(exc).__name__}: {exc}"
    raise InternalError(str(exc), detail=detail) from exc
