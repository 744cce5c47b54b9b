"""Repositorios de diagnósticos, feedback y usuarios - operaciones de persistencia."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

DIAGNOSTICS_COLUMNS = (
    "id",
    "device_name",
    "device_model",
    "device_firmware",
    "device_git_hash",
    "device_uptime",
    "device_utc_time",
    "device_battery_capacity",
    "device_serial_number",
    "device_hardware_version",
    "authenticated",
    "pup",
    "lorax",
    "device_mac",
    "device_dob",
    "device_chamber_type",
    "device_profiles",
    "device_services",
    "session_id",
    "user_agent",
    "ip",
    "created_at",
)


def insert_diagnostics(db: Session, row: Dict[str, Any]) -> None:
    """Inserta un reporte de diagnóstico.

    device_profiles y device_services se guardan como JSON en texto.
    """
    values = {column: row.get(column) for column in DIAGNOSTICS_COLUMNS}
    values["created_at"] = values["created_at"] or datetime.now(timezone.utc)
    for column in ("device_profiles", "device_services"):
        if values[column] is not None:
            values[column] = json.dumps(values[column], separators=(",", ":"))

    columns = ", ".join(DIAGNOSTICS_COLUMNS)
    placeholders = ", ".join(f":{c}" for c in DIAGNOSTICS_COLUMNS)
    db.execute(
        text(f"INSERT INTO diagnostics ({columns}) VALUES ({placeholders})").bindparams(
            bindparam("device_dob", type_=DateTime()),
            bindparam("created_at", type_=DateTime()),
        ),
        values,
    )


def insert_feedback(db: Session, feedback_id: str, message: str, ip: str) -> None:
    db.execute(
        text(
            """
            INSERT INTO feedback (id, message, ip, created_at)
            VALUES (:id, :message, :ip, :created_at)
            """
        ).bindparams(bindparam("created_at", type_=DateTime())),
        {
            "id": feedback_id,
            "message": message,
            "ip": ip,
            "created_at": datetime.now(timezone.utc),
        },
    )


def get_user(db: Session, user_id: str) -> Optional[Dict[str, Any]]:
    """Obtiene un usuario por id (incluye campos privados; sanitizar antes de responder)."""
    row = db.execute(
        text(
            """
            SELECT id, name, image, flags, platform, platform_id, refresh_token, created_at
            FROM users
            WHERE id = :user_id
            """
        ),
        {"user_id": user_id},
    ).mappings().fetchone()
    return dict(row) if row else None
