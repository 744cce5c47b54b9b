"""Identidad de dispositivos: esquemas de derivación y migración entre esquemas."""

from .migration import KeyedRecordStore, MigrationOutcome, migrate_device_identity
from .schemes import (
    CURRENT_SCHEME,
    DEFAULT_NAMESPACE,
    DeviceKeys,
    IdentityScheme,
    decode_current_key,
    derive_device_key,
    derive_key,
    parse_mac,
)

__all__ = [
    "CURRENT_SCHEME",
    "DEFAULT_NAMESPACE",
    "DeviceKeys",
    "IdentityScheme",
    "KeyedRecordStore",
    "MigrationOutcome",
    "decode_current_key",
    "derive_device_key",
    "derive_key",
    "migrate_device_identity",
    "parse_mac",
]
