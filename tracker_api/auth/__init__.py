"""Módulo de autenticación.

Consolida:
- Firma de payloads de dispositivo (X-Signature)
- Sesiones de usuario (Authorization)
"""

from .dependencies import get_client_ip, optional_user_id, require_user_id, signed_payload
from .sessions import SessionStore
from .signature import AuthenticatorConfig, RequestAuthenticator

__all__ = [
    "AuthenticatorConfig",
    "RequestAuthenticator",
    "SessionStore",
    "get_client_ip",
    "optional_user_id",
    "require_user_id",
    "signed_payload",
]
