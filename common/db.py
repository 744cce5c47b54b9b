from __future__ import annotations

from typing import Iterator
import logging

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker


logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    """Crea el engine para la URL dada.

    SQLite se usa en desarrollo y tests; en producción DATABASE_URL apunta a PostgreSQL.
    """
    parsed = make_url(url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine backend=%s host=%s db=%s user=%s",
        parsed.get_backend_name(),
        parsed.host,
        parsed.database,
        parsed.username,
    )

    kwargs: dict = {"pool_pre_ping": True, "future": True}
    if parsed.get_backend_name() == "sqlite":
        # Los handlers síncronos de FastAPI corren en un threadpool.
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_recycle"] = 300

    return create_engine(url, **kwargs)


def check_connection(engine: Engine) -> bool:
    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
        return True
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")
        return False


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
