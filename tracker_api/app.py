"""Construcción de la aplicación FastAPI.

create_app falla antes de servir cualquier request si la configuración es
inválida (p. ej. DEVICE_SIGNING_SECRET vacío).
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from common.config import Settings, get_settings
from common.db import build_engine, make_session_factory
from .auth import AuthenticatorConfig, RequestAuthenticator, SessionStore
from .endpoints import devices_router, health_router, sessions_router, telemetry_router
from .errors import register_exception_handlers
from .infrastructure.persistence import ensure_schema
from .infrastructure.redis_connection import RedisConnection

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    redis_client=None,
    auto_migrate: bool = True,
) -> FastAPI:
    """Crea la app con sus dependencias.

    Args:
        settings: Configuración (por defecto get_settings())
        engine: Engine ya construido (tests); si no, se crea desde DATABASE_URL
        redis_client: Cliente Redis ya construido (tests); si no, desde REDIS_URL
        auto_migrate: Crear tablas al arrancar

    Raises:
        ConfigurationError: Secreto de firma ausente o vacío
    """
    settings = settings or get_settings()

    # Primero: sin secreto válido el proceso no debe arrancar.
    authenticator = RequestAuthenticator(AuthenticatorConfig.from_settings(settings))

    engine = engine or build_engine(settings.database_url)
    if auto_migrate:
        ensure_schema(engine)

    redis_connection = RedisConnection(settings.redis_url, client=redis_client)

    app = FastAPI(title="Device Tracker API", version="0.1.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.authenticator = authenticator
    app.state.redis = redis_connection
    app.state.session_store = SessionStore(
        redis_connection.client, ttl_seconds=settings.session_ttl_seconds
    )

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(telemetry_router)
    app.include_router(devices_router)
    app.include_router(sessions_router)

    logger.info(
        "[APP] Started namespace=%s session_ttl=%ss",
        settings.device_key_namespace,
        settings.session_ttl_seconds,
    )
    return app
