"""Consulta de un dispositivo por device_id."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from common.db import get_db
from ..errors import error_body
from ..infrastructure.persistence import DeviceRecordStore
from ..schemas import DeviceOut
from .common import fail_internal

router = APIRouter(tags=["devices"])


# device_id es base64 estándar y puede contener "/"
@router.get("/device/{device_id:path}")
def get_device(device_id: str, request: Request, db: Session = Depends(get_db)):
    try:
        record = DeviceRecordStore(db).find(device_id)
    except Exception as e:
        fail_internal(request, db, e)

    if record is None:
        return JSONResponse(status_code=404, content=error_body("device_not_found"))

    return {
        "success": True,
        "data": {"device": DeviceOut(**record).model_dump(mode="json")},
    }
