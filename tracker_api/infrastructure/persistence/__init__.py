"""Persistencia SQL del tracker."""

from .device_store import DeviceRecordStore, MUTABLE_COLUMNS
from .memory_store import InMemoryDeviceStore
from .repositories import get_user, insert_diagnostics, insert_feedback
from .schema import ensure_schema

__all__ = [
    "DeviceRecordStore",
    "InMemoryDeviceStore",
    "MUTABLE_COLUMNS",
    "ensure_schema",
    "get_user",
    "insert_diagnostics",
    "insert_feedback",
]
