from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, validator


class _DeviceModel(BaseModel):
    class Config:
        populate_by_name = True


class TrackedDeviceIn(_DeviceModel):
    name: str = Field(..., min_length=1, max_length=255)
    model: str = Field(..., min_length=1, max_length=64)
    # El formato exacto lo valida identity.parse_mac (error propio invalid_device_mac)
    mac: str = Field(..., min_length=1, max_length=32)
    dob: int
    total_dabs: int = Field(..., ge=0, alias="totalDabs")


class TrackingIn(BaseModel):
    """Payload firmado de POST /track."""
    name: str = Field(..., max_length=255)
    device: TrackedDeviceIn


class DeviceParametersIn(_DeviceModel):
    name: Optional[str] = None
    model: Optional[str] = None
    firmware: Optional[str] = None
    hash: Optional[str] = None
    uptime: Optional[int] = None
    utc: Optional[int] = None
    battery_capacity: Optional[int] = Field(default=None, alias="batteryCapacity")
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    hardware_version: Optional[Union[int, str]] = Field(default=None, alias="hardwareVersion")
    authenticated: Optional[bool] = None
    pup_service: Optional[bool] = Field(default=None, alias="pupService")
    lorax_service: Optional[bool] = Field(default=None, alias="loraxService")
    mac: Optional[str] = None
    dob: Optional[int] = None
    chamber_type: Optional[int] = Field(default=None, alias="chamberType")


class DiagnosticsIn(BaseModel):
    """Payload firmado de POST /diag."""
    session_id: Optional[str] = Field(default=None, max_length=128)
    device_parameters: DeviceParametersIn
    device_profiles: Optional[Any] = None
    device_services: Optional[Any] = None


class FeedbackIn(BaseModel):
    """Payload firmado de POST /feedback."""
    message: str = Field(..., max_length=4000)

    @validator("message")
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError("message is required")
        return v


class DeviceOut(BaseModel):
    # last_ip nunca sale en respuestas
    id: str
    device_id: str
    id_scheme: int
    device_name: Optional[str] = None
    device_dob: Optional[datetime] = None
    device_model: Optional[str] = None
    owner_name: Optional[str] = None
    total_dabs: int = 0
    last_active: Optional[datetime] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


class UserOut(BaseModel):
    # platform, platform_id y refresh_token nunca salen en respuestas
    id: str
    name: str
    image: Optional[str] = None
    flags: int = 0
    created_at: Optional[datetime] = None
