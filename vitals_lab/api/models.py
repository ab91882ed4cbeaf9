"""
Data models for pulse-oximeter telemetry.

``Reading`` is what a device sends: every field optional, numeric fields
coerced leniently (anything that does not coerce becomes ``None``).
``Entry`` is what the store keeps: frozen, fully populated, serialized
with the camelCase names the device and dashboard speak.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def coerce_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` if it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


class RejectReason(str, Enum):
    MISSING_FIELD = "missing_field"
    OUT_OF_RANGE = "out_of_range"
    CALLER_FLAGGED_INVALID = "caller_flagged_invalid"


class Reading(BaseModel):
    """Raw sample as posted by the sensor board."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    spo2: Optional[float] = None
    heart_rate: Optional[float] = Field(None, alias="heartRate")
    temp_c: Optional[float] = Field(None, alias="tempC")
    temp_f: Optional[float] = Field(None, alias="tempF")
    device: Optional[str] = None
    timestamp: Optional[int] = None
    valid_hr: Optional[bool] = Field(None, alias="validHR")
    valid_spo2: Optional[bool] = Field(None, alias="validSPO2")

    @field_validator("spo2", "heart_rate", "temp_c", "temp_f", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> Optional[float]:
        return coerce_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Optional[int]:
        number = coerce_float(value)
        return None if number is None else int(number)

    @field_validator("device", mode="before")
    @classmethod
    def _device(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    @field_validator("valid_hr", "valid_spo2", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Optional[bool]:
        return coerce_flag(value)


class Entry(BaseModel):
    """Validated, normalized telemetry record held by the store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    spo2: float
    heart_rate: float = Field(..., alias="heartRate")
    temp_c: Optional[float] = Field(None, alias="tempC")
    temp_f: Optional[float] = Field(None, alias="tempF")
    device: str
    device_timestamp: int = Field(..., alias="deviceTimestamp")
    server_timestamp: int = Field(..., alias="serverTimestamp")
    valid_hr: bool = Field(..., alias="validHR")
    valid_spo2: bool = Field(..., alias="validSPO2")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class Verdict:
    """Outcome of validating one reading: an entry or a reason, never both."""

    entry: Optional[Entry] = None
    reason: Optional[RejectReason] = None

    @property
    def accepted(self) -> bool:
        return self.entry is not None

    @classmethod
    def accept(cls, entry: Entry) -> "Verdict":
        return cls(entry=entry)

    @classmethod
    def reject(cls, reason: RejectReason) -> "Verdict":
        return cls(reason=reason)
