"""Endpoints firmados por dispositivos: /track, /diag y /feedback.

Todos exigen body base64 + header X-Signature. Sin firma -> 400 con el
código del endpoint; firma incorrecta -> 400 invalid_signature.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from common.db import get_db
from ..auth import get_client_ip, optional_user_id, signed_payload
from ..errors import MalformedEnvelope, TrackerError
from ..ids import generate_id
from ..infrastructure.persistence import DeviceRecordStore, get_user, insert_diagnostics, insert_feedback
from ..schemas import DeviceOut, DiagnosticsIn, FeedbackIn, TrackingIn
from ..tracking import INVALID_TRACKING_DATA, epoch_to_datetime, record_telemetry
from .common import fail_internal

router = APIRouter(tags=["telemetry"])
logger = logging.getLogger(__name__)

# Valor que envía el firmware cuando no conoce la fecha de fabricación
UNKNOWN_DOB = 1000


@router.post("/track")
def track(
    request: Request,
    payload: bytes = Depends(signed_payload(INVALID_TRACKING_DATA)),
    user_id: Optional[str] = Depends(optional_user_id),
    db: Session = Depends(get_db),
):
    """Registra un contacto del dispositivo (last-write-wins) migrando su clave si es legacy."""
    data = TrackingIn.model_validate_json(payload)

    try:
        # Solo una sesión cuyo usuario existe vincula el dispositivo
        if user_id is not None and get_user(db, user_id) is None:
            logger.info("[SESSION] Session points to missing user_id=%s, tracking anonymous", user_id)
            user_id = None

        record = record_telemetry(
            DeviceRecordStore(db),
            data,
            ip=get_client_ip(request),
            user_id=user_id,
            namespace=request.app.state.settings.device_key_namespace,
        )
        db.commit()
    except TrackerError:
        db.rollback()
        raise
    except Exception as e:
        fail_internal(request, db, e)

    return {
        "success": True,
        "data": {"device": DeviceOut(**record).model_dump(mode="json")},
    }


@router.post("/diag", status_code=204)
def diag(
    request: Request,
    payload: bytes = Depends(signed_payload("invalid_diag_data")),
    db: Session = Depends(get_db),
):
    """Guarda un reporte de diagnóstico del dispositivo."""
    data = DiagnosticsIn.model_validate_json(payload)
    params = data.device_parameters

    device_dob = None
    if params.dob is not None and params.dob != UNKNOWN_DOB:
        device_dob = epoch_to_datetime(params.dob, code="invalid_diag_data")

    row = {
        "id": generate_id("diagnostics"),
        "device_name": params.name,
        "device_model": params.model,
        "device_firmware": params.firmware,
        "device_git_hash": params.hash,
        "device_uptime": params.uptime,
        "device_utc_time": params.utc,
        "device_battery_capacity": params.battery_capacity,
        "device_serial_number": params.serial_number,
        "device_hardware_version": (
            str(params.hardware_version) if params.hardware_version is not None else None
        ),
        "authenticated": params.authenticated,
        "pup": params.pup_service,
        "lorax": params.lorax_service,
        "device_mac": params.mac,
        "device_dob": device_dob,
        "device_chamber_type": params.chamber_type,
        "device_profiles": data.device_profiles,
        "device_services": data.device_services,
        "session_id": data.session_id,
        "user_agent": request.headers.get("user-agent") or "unknown",
        "ip": get_client_ip(request),
    }

    try:
        insert_diagnostics(db, row)
        db.commit()
    except Exception as e:
        # Un reporte que la BD rechaza se trata como payload inválido
        logger.exception("DB error in /diag err=%s", type(e).__name__)
        db.rollback()
        raise MalformedEnvelope("diagnostics rejected by storage", code=INVALID_TRACKING_DATA) from e

    return Response(status_code=204)


@router.post("/feedback", status_code=204)
def feedback(
    request: Request,
    payload: bytes = Depends(signed_payload("invalid_feedback_request")),
    db: Session = Depends(get_db),
):
    data = FeedbackIn.model_validate_json(payload)

    try:
        insert_feedback(db, generate_id("feedback"), data.message, get_client_ip(request))
        db.commit()
    except Exception as e:
        fail_internal(request, db, e)

    return Response(status_code=204)
