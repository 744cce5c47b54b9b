"""Migración de registros de dispositivo al esquema de identidad actual.

Política (se ejecuta antes de cualquier lectura/escritura con current_key):
1. Para cada clave de un esquema anterior, renombrar atómicamente
   old_key -> current_key (UPDATE condicional, nunca leer-y-escribir)
2. Si el rename no aplica porque ya existe current_key, borrar el registro
   viejo que haya quedado (condicional por clave)
3. Todo lo posterior usa solo current_key

Es idempotente: N ejecuciones convergen a un único registro en current_key
y ninguno en las claves antiguas. Con requests concurrentes del mismo
dispositivo solo un rename gana; los demás ven el estado ya migrado.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from .schemes import CURRENT_SCHEME, DeviceKeys, IdentityScheme

logger = logging.getLogger(__name__)


class KeyedRecordStore(Protocol):
    """Operaciones del store que necesita la migración."""

    def rename_key(self, old_key: str, new_key: str, scheme: IdentityScheme) -> bool:
        """Rename atómico. True solo si esta llamada movió el registro."""
        ...

    def delete(self, key: str) -> bool:
        """Borrado condicional por clave. True si borró una fila."""
        ...


class MigrationOutcome(str, Enum):
    RENAMED = "renamed"
    MERGED = "merged"
    ALREADY_CURRENT = "already_current"


def migrate_device_identity(store: KeyedRecordStore, keys: DeviceKeys) -> MigrationOutcome:
    """Aplica la política de migración para un dispositivo.

    Returns:
        RENAMED si esta llamada movió el registro legacy,
        MERGED si se eliminó un legacy sobrante porque current ya existía,
        ALREADY_CURRENT si no había nada que migrar (o otra request ganó).
    """
    outcome = MigrationOutcome.ALREADY_CURRENT

    for scheme, old_key in keys.superseded:
        if old_key == keys.current_key:
            continue

        if store.rename_key(old_key, keys.current_key, CURRENT_SCHEME):
            logger.info(
                "[IDENTITY] Migrated device key scheme=%s -> %s",
                scheme.name,
                CURRENT_SCHEME.name,
            )
            outcome = MigrationOutcome.RENAMED
            continue

        # Rename no aplicado: no había legacy, otra request ya migró, o
        # current_key ya existía y el legacy quedó duplicado.
        if store.delete(old_key):
            logger.info(
                "[IDENTITY] Dropped stale device key scheme=%s (current record exists)",
                scheme.name,
            )
            if outcome is MigrationOutcome.ALREADY_CURRENT:
                outcome = MigrationOutcome.MERGED
        else:
            logger.debug("[IDENTITY] Nothing to migrate scheme=%s", scheme.name)

    return outcome
