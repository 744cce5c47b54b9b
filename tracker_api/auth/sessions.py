"""Tokens de sesión guardados en Redis.

Formato de clave: sessions/<token> -> user_id
Un token desconocido o expirado equivale a "sin sesión".
"""

from __future__ import annotations

import logging
from typing import Optional

from ..ids import generate_id

logger = logging.getLogger(__name__)

KEY_PREFIX = "sessions/"


def _token_hint(token: str) -> str:
    return token[:12] if len(token) >= 12 else "***"


class SessionStore:
    """Resuelve y emite tokens de sesión.

    Args:
        client: Cliente redis-py (decode_responses=True)
        ttl_seconds: Expiración de nuevas sesiones (0 = sin expiración)
    """

    def __init__(self, client, ttl_seconds: int = 0):
        self._redis = client
        self._ttl = int(ttl_seconds)

    def resolve(self, token: Optional[str]) -> Optional[str]:
        """Devuelve el user_id de la sesión, o None si no existe."""
        if not token:
            return None
        user_id = self._redis.get(f"{KEY_PREFIX}{token}")
        if user_id is None:
            logger.debug("[SESSION] Unknown session token=%s", _token_hint(token))
            return None
        if isinstance(user_id, bytes):
            user_id = user_id.decode("utf-8")
        return user_id

    def issue(self, user_id: str) -> str:
        token = generate_id("session")
        self._redis.set(f"{KEY_PREFIX}{token}", user_id, ex=self._ttl or None)
        logger.info("[SESSION] Issued session token=%s user_id=%s", _token_hint(token), user_id)
        return token

    def revoke(self, token: str) -> bool:
        return bool(self._redis.delete(f"{KEY_PREFIX}{token}"))
