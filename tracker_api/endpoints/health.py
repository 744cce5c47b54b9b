"""Health and readiness endpoints."""

from fastapi import APIRouter, HTTPException, Request

from common.db import check_connection

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness: el proceso responde."""
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    """Readiness: la DB es obligatoria; Redis solo se informa.

    Sin Redis la telemetría sigue entrando de forma anónima, por eso no
    marca la instancia como no lista.
    """
    # check_connection loguea el error; no se exponen detalles al cliente
    if not check_connection(request.app.state.engine):
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready", "redis": request.app.state.redis.ping()}
