"""Endpoints de sesión: /verify (interno) y /user (requiere sesión)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from common.db import get_db
from ..auth import optional_user_id, require_user_id
from ..errors import AuthenticationRequired
from ..infrastructure.persistence import get_user
from ..schemas import UserOut
from .common import fail_internal

router = APIRouter(tags=["sessions"])
logger = logging.getLogger(__name__)


def _load_user(request: Request, db: Session, user_id: str) -> Optional[dict]:
    try:
        return get_user(db, user_id)
    except Exception as e:
        fail_internal(request, db, e)


@router.get("/verify")
def verify_session(
    request: Request,
    user_id: Optional[str] = Depends(optional_user_id),
    db: Session = Depends(get_db),
):
    """Usado por otros servicios internos para validar un token de sesión."""
    if user_id is None:
        return {"valid": False}

    user = _load_user(request, db, user_id)
    if user is None:
        logger.info("[SESSION] Session points to missing user_id=%s", user_id)
        return {"valid": False}

    return {"valid": True, "user": UserOut(**user).model_dump(mode="json")}


@router.get("/user")
def current_user(
    request: Request,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    user = _load_user(request, db, user_id)
    if user is None:
        raise AuthenticationRequired()

    return {"success": True, "data": {"user": UserOut(**user).model_dump(mode="json")}}
