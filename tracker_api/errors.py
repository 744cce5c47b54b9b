"""Errores de dominio y su traducción a respuestas HTTP.

Todas las respuestas de error comparten el formato:
    {"success": false, "error": {"code": "<code>"}}

Los errores de firma y de identidad son errores del cliente (400), nunca 500.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Base de los errores con código público."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.code)
        if code is not None:
            self.code = code


class InternalError(TrackerError):
    """Fallo inesperado (BD, red). El detalle solo se expone con TRACKER_DEBUG_ERRORS=1."""

    def __init__(self, message: str = "", *, detail: str | None = None):
        super().__init__(message)
        self.detail = detail


class ConfigurationError(TrackerError):
    """Configuración inválida detectada al arrancar. Fatal."""

    code = "misconfigured"


class SignatureRejected(TrackerError):
    """La firma no corresponde al payload recibido."""

    code = "invalid_signature"
    status_code = 400


class MalformedEnvelope(TrackerError):
    """Falta la cabecera de firma o el body no es base64 válido.

    El código depende del endpoint (invalid_tracking_data, invalid_diag_data, ...).
    """

    code = "invalid_request"
    status_code = 400


class InvalidDeviceIdentity(TrackerError):
    """MAC mal formada: longitud incorrecta o caracteres no hexadecimales."""

    code = "invalid_device_mac"
    status_code = 400


class AuthenticationRequired(TrackerError):
    """Endpoint con sesión obligatoria: falta el header o la sesión no es válida."""

    code = "invalid_authentication"
    status_code = 403


class SessionStoreUnavailable(TrackerError):
    code = "session_store_unavailable"
    status_code = 503


def error_body(code: str, **extra) -> dict:
    error = {"code": code}
    error.update(extra)
    return {"success": False, "error": error}


async def _tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed code=%s", request.method, request.url.path, exc.code)
    else:
        logger.info("[API] %s %s rejected code=%s", request.method, request.url.path, exc.code)
    extra = {}
    if getattr(exc, "detail", None):
        extra["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, **extra))


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, ValidationError):
        issues = exc.errors(include_url=False, include_context=False)
    else:
        issues = exc.errors()
    return JSONResponse(
        status_code=400,
        content=error_body("validation_error", issues=jsonable_encoder(issues)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackerError, _tracker_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
