"""Conexión a Redis."""

from __future__ import annotations

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class RedisConnection:
    """Gestiona la conexión a Redis (store de sesiones).

    Args:
        url: REDIS_URL
        client: Cliente ya construido (tests); si no, se crea desde la URL
    """

    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self._url = url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Cliente perezoso: redis-py conecta en el primer comando."""
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=5.0,
                socket_connect_timeout=5.0,
            )
            logger.info("[REDIS] Client created: %s", self._url.split("@")[-1])
        return self._client

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning("[REDIS] Ping failed: %s", e)
            return False
