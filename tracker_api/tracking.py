"""Flujo de telemetría: identidad -> migración -> upsert del registro.

Orden obligatorio:
1. Derivar ambas claves desde la MAC
2. Migrar registros legacy a current_key (antes de tocar current_key)
3. Leer/escribir solo con current_key
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from .errors import MalformedEnvelope
from .identity import DEFAULT_NAMESPACE, KeyedRecordStore, derive_device_key, migrate_device_identity, parse_mac
from .ids import generate_id
from .schemas import TrackingIn

logger = logging.getLogger(__name__)

INVALID_TRACKING_DATA = "invalid_tracking_data"


class DeviceStore(KeyedRecordStore, Protocol):
    def upsert(self, device_id: str, fields: Dict[str, Any], *, record_id: str) -> Dict[str, Any]:
        ...


def epoch_to_datetime(seconds: int, *, code: str = INVALID_TRACKING_DATA) -> datetime:
    """Convierte epoch en segundos a datetime UTC; fuera de rango es un payload inválido."""
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise MalformedEnvelope(f"invalid timestamp: {seconds}", code=code) from e


def record_telemetry(
    store: DeviceStore,
    payload: TrackingIn,
    *,
    ip: str,
    user_id: Optional[str] = None,
    namespace: str = DEFAULT_NAMESPACE,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Registra un contacto del dispositivo y devuelve el registro resultante.

    Raises:
        InvalidDeviceIdentity: MAC mal formada (no se deriva nada)
        MalformedEnvelope: dob fuera de rango
    """
    keys = derive_device_key(parse_mac(payload.device.mac), namespace)
    dob = epoch_to_datetime(payload.device.dob)

    outcome = migrate_device_identity(store, keys)

    fields: Dict[str, Any] = {
        "device_name": payload.device.name,
        "device_dob": dob,
        "device_model": payload.device.model,
        "owner_name": payload.name,
        "total_dabs": payload.device.total_dabs,
        "last_active": now or datetime.now(timezone.utc),
        "last_ip": ip,
    }
    # user_id solo se sobrescribe si la request trae sesión
    if user_id is not None:
        fields["user_id"] = user_id

    record = store.upsert(keys.current_key, fields, record_id=generate_id("leaderboard"))
    logger.info(
        "[TRACK] Device contact id=%s migration=%s total_dabs=%s",
        record["id"],
        outcome.value,
        payload.device.total_dabs,
    )
    return record
