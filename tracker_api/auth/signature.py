"""Verificación de firma de payloads enviados por dispositivos.

FLUJO:
1. El firmware envía el body (base64) y la firma en el header X-Signature
2. El endpoint decodifica el body y llama a RequestAuthenticator.verify
3. verify calcula HMAC-SHA256(secret, payload) y lo compara en tiempo constante
4. Si coincide, devuelve los mismos bytes; si no, SignatureRejected (400)

SEGURIDAD:
- El secreto compartido se carga una vez al arrancar y es inmutable
- El secreto nunca se loguea ni aparece en repr
- Un secreto vacío impide arrancar el proceso
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field

from common.config import Settings

from ..errors import ConfigurationError, SignatureRejected

logger = logging.getLogger(__name__)

DIGEST = hashlib.sha256


@dataclass(frozen=True)
class AuthenticatorConfig:
    """Configuración inmutable del autenticador.

    Attributes:
        secret: Secreto compartido con el firmware (bytes, nunca vacío)
    """
    secret: bytes = field(repr=False)

    def __post_init__(self):
        if not isinstance(self.secret, (bytes, bytearray)):
            raise ConfigurationError("signing secret must be bytes")
        if not self.secret.strip():
            raise ConfigurationError("DEVICE_SIGNING_SECRET is empty or not set")
        # Copia inmutable: un bytearray del llamador no debe poder alterar el secreto
        object.__setattr__(self, "secret", bytes(self.secret))

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthenticatorConfig":
        return cls(secret=(settings.signing_secret or "").encode("utf-8"))


class RequestAuthenticator:
    """Autentica payloads de telemetría firmados con el secreto compartido.

    Sin estado mutable: es seguro usar una única instancia desde cualquier
    número de requests concurrentes.
    """

    def __init__(self, config: AuthenticatorConfig):
        self._config = config

    def sign(self, payload: bytes) -> str:
        """Firma hexadecimal (minúsculas) del payload."""
        return hmac.new(self._config.secret, payload, DIGEST).hexdigest()

    def verify(self, payload: bytes, signature: str) -> bytes:
        """Verifica la firma y devuelve el payload sin modificar.

        Args:
            payload: Bytes exactos recibidos (sin re-serializar)
            signature: Valor del header de firma

        Returns:
            El mismo objeto payload

        Raises:
            SignatureRejected: Si la firma no coincide
        """
        expected = self.sign(payload)
        supplied = (signature or "").strip().lower()

        # compare_digest sobre bytes ASCII: no falla con caracteres no-ASCII
        if not hmac.compare_digest(
            expected.encode("ascii"),
            supplied.encode("utf-8", errors="replace"),
        ):
            logger.warning("[AUTH] Signature mismatch payload_len=%d", len(payload))
            raise SignatureRejected()

        return payload
