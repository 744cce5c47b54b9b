from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al directorio de trabajo, igual que en el despliegue con docker-compose.
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    database_url: str
    redis_url: str

    # Nunca se loguea ni se expone en repr.
    signing_secret: str = field(repr=False)
    device_key_namespace: str = "device_"

    session_ttl_seconds: int = 0
    log_level: str = "INFO"
    debug_errors: bool = False


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("TRACKER_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./tracker.db")
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Sin default: un secreto vacío se rechaza al construir el autenticador.
    signing_secret = os.getenv("DEVICE_SIGNING_SECRET", "")
    namespace = os.getenv("DEVICE_KEY_NAMESPACE", "device_")

    # 0 = sesiones sin expiración (comportamiento histórico)
    session_ttl_seconds = int(os.getenv("SESSION_TTL_SECONDS", "0"))

    return Settings(
        database_url=database_url,
        redis_url=redis_url,
        signing_secret=signing_secret,
        device_key_namespace=namespace,
        session_ttl_seconds=session_ttl_seconds,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        debug_errors=os.getenv("TRACKER_DEBUG_ERRORS", "").strip() == "1",
    )
