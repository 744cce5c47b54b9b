"""Store de registros de dispositivo (tabla leaderboard) indexado por device_id.

Operaciones: find, create, update, rename_key (atómico) y delete.
Todas trabajan sobre la Session del request; el commit lo hace el endpoint.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...identity.schemes import CURRENT_SCHEME, IdentityScheme

logger = logging.getLogger(__name__)

# Columnas sobrescritas en cada contacto (last-write-wins).
# id, device_id y created_at nunca se tocan desde update().
MUTABLE_COLUMNS = (
    "device_name",
    "device_dob",
    "device_model",
    "owner_name",
    "total_dabs",
    "last_active",
    "last_ip",
    "user_id",
)

_TIMESTAMP_COLUMNS = ("device_dob", "last_active", "created_at")

_SELECT_COLUMNS = """
    id, device_id, id_scheme, device_name, device_dob, device_model,
    owner_name, total_dabs, last_active, last_ip, user_id, created_at
"""


def _with_timestamps(sql: str, names) -> Any:
    stmt = text(sql)
    params = [bindparam(name, type_=DateTime()) for name in names if f":{name}" in sql]
    return stmt.bindparams(*params) if params else stmt


class DeviceRecordStore:
    """Acceso SQL a los registros de dispositivo."""

    def __init__(self, db: Session):
        self._db = db

    def find(self, device_id: str) -> Optional[Dict[str, Any]]:
        row = self._db.execute(
            text(f"SELECT {_SELECT_COLUMNS} FROM leaderboard WHERE device_id = :device_id"),
            {"device_id": device_id},
        ).mappings().fetchone()
        return dict(row) if row else None

    def count(self, device_id: str) -> int:
        return int(
            self._db.execute(
                text("SELECT COUNT(*) FROM leaderboard WHERE device_id = :device_id"),
                {"device_id": device_id},
            ).scalar_one()
        )

    def create(self, record: Dict[str, Any]) -> None:
        values = {
            "id": record["id"],
            "device_id": record["device_id"],
            "id_scheme": int(record.get("id_scheme", CURRENT_SCHEME)),
            "created_at": record.get("created_at") or datetime.now(timezone.utc),
        }
        for column in MUTABLE_COLUMNS:
            values[column] = record.get(column)
        if values["total_dabs"] is None:
            values["total_dabs"] = 0

        columns = ", ".join(values)
        placeholders = ", ".join(f":{c}" for c in values)
        self._db.execute(
            _with_timestamps(
                f"INSERT INTO leaderboard ({columns}) VALUES ({placeholders})",
                _TIMESTAMP_COLUMNS,
            ),
            values,
        )

    def update(self, device_id: str, fields: Dict[str, Any]) -> bool:
        """Sobrescribe los campos mutables. True si existía el registro."""
        unknown = set(fields) - set(MUTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not fields:
            return self.find(device_id) is not None

        assignments = ", ".join(f"{c} = :{c}" for c in fields)
        result = self._db.execute(
            _with_timestamps(
                f"UPDATE leaderboard SET {assignments} WHERE device_id = :device_id",
                _TIMESTAMP_COLUMNS,
            ),
            {**fields, "device_id": device_id},
        )
        return result.rowcount > 0

    def rename_key(self, old_key: str, new_key: str, scheme: IdentityScheme) -> bool:
        """Compare-and-rename atómico old_key -> new_key.

        Un solo UPDATE condicional: aplica solo si old_key existe y new_key no.
        Con requests concurrentes, la que pierde ve rowcount 0.
        """
        result = self._db.execute(
            text(
                """
                UPDATE leaderboard
                SET device_id = :new_key, id_scheme = :scheme
                WHERE device_id = :old_key
                  AND NOT EXISTS (
                    SELECT 1 FROM leaderboard WHERE device_id = :new_key
                  )
                """
            ),
            {"old_key": old_key, "new_key": new_key, "scheme": int(scheme)},
        )
        return result.rowcount == 1

    def delete(self, device_id: str) -> bool:
        result = self._db.execute(
            text("DELETE FROM leaderboard WHERE device_id = :device_id"),
            {"device_id": device_id},
        )
        return result.rowcount > 0

    def upsert(self, device_id: str, fields: Dict[str, Any], *, record_id: str) -> Dict[str, Any]:
        """Actualiza el registro o lo crea si no existe.

        Si dos requests crean el mismo dispositivo a la vez, la que pierde el
        INSERT (violación de UNIQUE) cae a UPDATE. Cualquier otra violación
        (p. ej. FK de user_id) se propaga.
        """
        if not self.update(device_id, fields):
            try:
                with self._db.begin_nested():
                    self.create({**fields, "id": record_id, "device_id": device_id})
                logger.info("[DB] Created device record id=%s", record_id)
            except IntegrityError:
                if self.count(device_id) == 0:
                    raise
                logger.debug("[DB] Concurrent create for device, falling back to update")
                self.update(device_id, fields)

        record = self.find(device_id)
        if record is None:
            raise RuntimeError(f"device record vanished during upsert: {device_id}")
        return record
