"""Esquemas de derivación de la clave de identidad de un dispositivo.

Convierte la MAC reportada por el dispositivo en device_id:
- LEGACY_UINT32 (v1): MAC textual sin "AA:" -> uint32 big-endian -> decimal -> base64
- MAC_BASE64 (v2): 6 bytes de la MAC -> base64

El esquema v1 pierde información (colapsa la MAC a 32 bits, puede colisionar y no
es invertible). Solo se mantiene para localizar y migrar registros antiguos.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Tuple

from ..errors import InvalidDeviceIdentity

DEFAULT_NAMESPACE = "device_"
MAC_LENGTH = 6

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:-])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")

# Longitud del prefijo textual que descartaba el esquema legacy ("AA:")
_LEGACY_STRIP = 3


class IdentityScheme(IntEnum):
    """Versión del esquema con que se generó un device_id (columna id_scheme)."""
    LEGACY_UINT32 = 1
    MAC_BASE64 = 2


CURRENT_SCHEME = IdentityScheme.MAC_BASE64


def parse_mac(text: str) -> bytes:
    """Parsea "AA:BB:CC:DD:EE:FF" (también con "-") a 6 bytes.

    Raises:
        InvalidDeviceIdentity: Longitud incorrecta o caracteres no hexadecimales
    """
    if not isinstance(text, str) or not _MAC_RE.match(text.strip()):
        raise InvalidDeviceIdentity(f"malformed MAC address: {text!r}")
    return bytes.fromhex(re.sub(r"[:-]", "", text.strip()))


def format_mac(raw_mac: bytes) -> str:
    return ":".join(f"{b:02X}" for b in raw_mac)


def _check_raw(raw_mac: bytes) -> bytes:
    if not isinstance(raw_mac, (bytes, bytearray)) or len(raw_mac) != MAC_LENGTH:
        size = len(raw_mac) if isinstance(raw_mac, (bytes, bytearray)) else None
        raise InvalidDeviceIdentity(f"MAC must be {MAC_LENGTH} bytes, got {size}")
    return bytes(raw_mac)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _legacy_uint32(raw_mac: bytes) -> bytes:
    # Reproduce el cálculo histórico sobre la forma textual de la MAC.
    tail = format_mac(raw_mac)[_LEGACY_STRIP:]
    octets = bytes(int(part, 16) for part in tail.split(":"))
    value = int.from_bytes(octets[:4], "big", signed=False)
    return str(value).encode("ascii")


def _mac_bytes(raw_mac: bytes) -> bytes:
    return raw_mac


_ENCODERS: Dict[IdentityScheme, Callable[[bytes], bytes]] = {
    IdentityScheme.LEGACY_UINT32: _legacy_uint32,
    IdentityScheme.MAC_BASE64: _mac_bytes,
}


def derive_key(
    raw_mac: bytes,
    scheme: IdentityScheme,
    namespace: str = DEFAULT_NAMESPACE,
) -> str:
    """Deriva el device_id de una MAC con el esquema indicado."""
    raw = _check_raw(raw_mac)
    return f"{namespace}{_b64(_ENCODERS[scheme](raw))}"


@dataclass(frozen=True)
class DeviceKeys:
    """Claves de un dispositivo en cada esquema conocido."""
    legacy_key: str
    current_key: str

    @property
    def superseded(self) -> Tuple[Tuple[IdentityScheme, str], ...]:
        """Claves de esquemas anteriores al actual, del más antiguo al más reciente."""
        return ((IdentityScheme.LEGACY_UINT32, self.legacy_key),)


def derive_device_key(raw_mac: bytes, namespace: str = DEFAULT_NAMESPACE) -> DeviceKeys:
    """Calcula (legacy_key, current_key) para una MAC de 6 bytes.

    Ambas claves son funciones puras y deterministas de la entrada.

    Example:
        >>> derive_device_key(bytes.fromhex("AABBCCDDEEFF")).current_key
        'device_qrvM3e7/'
    """
    raw = _check_raw(raw_mac)
    return DeviceKeys(
        legacy_key=derive_key(raw, IdentityScheme.LEGACY_UINT32, namespace),
        current_key=derive_key(raw, CURRENT_SCHEME, namespace),
    )


def decode_current_key(key: str, namespace: str = DEFAULT_NAMESPACE) -> bytes:
    """Recupera los 6 bytes de MAC desde una clave del esquema actual.

    Raises:
        InvalidDeviceIdentity: Si la clave no pertenece al esquema actual
    """
    if not key.startswith(namespace):
        raise InvalidDeviceIdentity(f"key outside namespace {namespace!r}")
    try:
        raw = base64.b64decode(key[len(namespace):], validate=True)
    except ValueError as e:
        raise InvalidDeviceIdentity(f"key is not base64: {e}") from e
    return _check_raw(raw)
