"""Dependencies de FastAPI para autenticación.

- signed_payload: body base64 + X-Signature -> bytes verificados
- optional_user_id / require_user_id: sesión por header Authorization
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Awaitable, Callable, Optional

import redis
from fastapi import Header, Request

from ..errors import AuthenticationRequired, MalformedEnvelope, SessionStoreUnavailable
from .sessions import SessionStore
from .signature import RequestAuthenticator

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature"


def get_authenticator(request: Request) -> RequestAuthenticator:
    return request.app.state.authenticator


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_client_ip(request: Request) -> str:
    """Obtiene la IP del cliente, considerando Cloudflare y proxies."""
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()

    # X-Forwarded-For puede tener múltiples IPs: "client, proxy1, proxy2"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "0.0.0.0"


def decode_envelope(raw_body: bytes, *, code: str) -> bytes:
    """Decodifica el body base64 enviado por el firmware (estricto)."""
    try:
        return base64.b64decode(b"".join(raw_body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedEnvelope("body is not valid base64", code=code) from e


def signed_payload(missing_code: str) -> Callable[..., Awaitable[bytes]]:
    """Crea la dependency que entrega el payload verificado.

    Args:
        missing_code: Código de error del endpoint si falta la firma o el body
            no es base64 (p. ej. invalid_tracking_data)
    """

    async def _dependency(
        request: Request,
        x_signature: str | None = Header(default=None, alias=SIGNATURE_HEADER),
    ) -> bytes:
        if not x_signature:
            raise MalformedEnvelope("missing signature header", code=missing_code)

        payload = decode_envelope(await request.body(), code=missing_code)
        return get_authenticator(request).verify(payload, x_signature)

    return _dependency


def _session_token(authorization: str | None) -> Optional[str]:
    if not authorization:
        return None
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def optional_user_id(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Optional[str]:
    """user_id de la sesión si existe; None si no hay sesión válida.

    Si Redis falla, la request continúa sin sesión (no bloquea la telemetría).
    """
    token = _session_token(authorization)
    if token is None:
        return None
    try:
        return get_session_store(request).resolve(token)
    except redis.RedisError as e:
        logger.warning("[SESSION] Session lookup failed, continuing anonymous: %s", e)
        return None


def require_user_id(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> str:
    """user_id de la sesión; 403 si falta el header o la sesión no existe."""
    token = _session_token(authorization)
    if token is None:
        raise AuthenticationRequired(code="missing_authorization")
    try:
        user_id = get_session_store(request).resolve(token)
    except redis.RedisError as e:
        logger.error("[SESSION] Session store unavailable: %s", e)
        raise SessionStoreUnavailable() from e
    if user_id is None:
        raise AuthenticationRequired()
    return user_id
