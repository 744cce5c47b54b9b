"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API organizados por función.
"""

from .devices import router as devices_router
from .health import router as health_router
from .sessions import router as sessions_router
from .telemetry import router as telemetry_router

__all__ = [
    "devices_router",
    "health_router",
    "sessions_router",
    "telemetry_router",
]
