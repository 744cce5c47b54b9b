"""Creación del esquema SQL.

Aplica los ficheros de migrations/ en orden. Es seguro llamarlo varias veces
(todas las sentencias usan IF NOT EXISTS).
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def ensure_schema(engine: Engine) -> None:
    """Crea las tablas si no existen.

    Args:
        engine: Engine de SQLAlchemy (PostgreSQL o SQLite)
    """
    files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not files:
        logger.warning("[DB] No migration files found in %s - skipping schema creation", MIGRATIONS_DIR)
        return

    try:
        with engine.begin() as conn:
            for sql_file in files:
                # Split by semicolon and execute each statement
                statements = [s.strip() for s in sql_file.read_text().split(";") if s.strip()]
                for statement in statements:
                    conn.execute(text(statement))
                logger.info("[DB] Applied %s (%d statements)", sql_file.name, len(statements))
    except Exception as e:
        logger.exception("[DB] Schema creation failed: %s", e)
        raise
