from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, Optional

from ...identity.schemes import CURRENT_SCHEME, IdentityScheme
from .device_store import MUTABLE_COLUMNS


class InMemoryDeviceStore:
    """Implementación en memoria del store de dispositivos.

    - Misma interfaz que DeviceRecordStore (find/create/update/rename_key/delete/upsert).
    - Un lock protege cada operación, así rename_key es atómico igual que el UPDATE SQL.
    - Pensado para tests y herramientas locales; no persiste nada.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: Dict[str, Dict[str, Any]] = {}

    def find(self, device_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(device_id)
            return deepcopy(record) if record is not None else None

    def count(self, device_id: str) -> int:
        with self._lock:
            return 1 if device_id in self._records else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def create(self, record: Dict[str, Any]) -> None:
        with self._lock:
            device_id = record["device_id"]
            if device_id in self._records:
                raise KeyError(f"duplicate device_id {device_id}")
            stored = {column: record.get(column) for column in MUTABLE_COLUMNS}
            stored.update(
                id=record["id"],
                device_id=device_id,
                id_scheme=int(record.get("id_scheme", CURRENT_SCHEME)),
                created_at=record.get("created_at") or datetime.now(timezone.utc),
            )
            if stored["total_dabs"] is None:
                stored["total_dabs"] = 0
            self._records[device_id] = stored

    def update(self, device_id: str, fields: Dict[str, Any]) -> bool:
        unknown = set(fields) - set(MUTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        with self._lock:
            record = self._records.get(device_id)
            if record is None:
                return False
            record.update(fields)
            return True

    def rename_key(self, old_key: str, new_key: str, scheme: IdentityScheme) -> bool:
        with self._lock:
            if old_key not in self._records or new_key in self._records:
                return False
            record = self._records.pop(old_key)
            record["device_id"] = new_key
            record["id_scheme"] = int(scheme)
            self._records[new_key] = record
            return True

    def delete(self, device_id: str) -> bool:
        with self._lock:
            return self._records.pop(device_id, None) is not None

    def upsert(self, device_id: str, fields: Dict[str, Any], *, record_id: str) -> Dict[str, Any]:
        if not self.update(device_id, fields):
            try:
                self.create({**fields, "id": record_id, "device_id": device_id})
            except KeyError:
                self.update(device_id, fields)
        return self.find(device_id)
