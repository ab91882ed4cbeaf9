"""
Reading validation.

Two policies exist and the server picks exactly one at startup:

- ``range``: spo2 and heartRate must be present and inside
  ``0 < spo2 <= 100`` and ``0 < heartRate <= 250`` (exclusive lower bound,
  inclusive upper bound). Caller-supplied validity flags are ignored.
- ``provenance``: trust the sender's ``validHR`` / ``validSPO2`` flags;
  accept only when both are true, whatever the magnitudes.

The caller never gets to choose the policy.
"""

from enum import Enum
from typing import Any, Mapping, Union

from .models import Entry, Reading, RejectReason, Verdict

SPO2_MIN_EXCLUSIVE = 0.0
SPO2_MAX = 100.0
HEART_RATE_MIN_EXCLUSIVE = 0.0
HEART_RATE_MAX = 250.0

DEFAULT_DEVICE = "esp32-max30102"


class ValidationMode(str, Enum):
    RANGE = "range"
    PROVENANCE = "provenance"


def spo2_in_range(spo2: float) -> bool:
    return SPO2_MIN_EXCLUSIVE < spo2 <= SPO2_MAX


def heart_rate_in_range(heart_rate: float) -> bool:
    return HEART_RATE_MIN_EXCLUSIVE < heart_rate <= HEART_RATE_MAX


def validate_reading(
    reading: Union[Reading, Mapping[str, Any]],
    *,
    received_at_ms: int,
    mode: ValidationMode = ValidationMode.RANGE,
    default_device: str = DEFAULT_DEVICE,
) -> Verdict:
    """
    Decide whether ``reading`` may be stored and normalize it.

    Pure: ``received_at_ms`` is supplied by the caller and becomes the
    entry's ``serverTimestamp`` (and its ``deviceTimestamp`` when the
    device sent none).
    """
    if not isinstance(reading, Reading):
        reading = Reading.model_validate(reading)

    if reading.spo2 is None or reading.heart_rate is None:
        return Verdict.reject(RejectReason.MISSING_FIELD)

    if mode is ValidationMode.PROVENANCE:
        if not (reading.valid_hr and reading.valid_spo2):
            return Verdict.reject(RejectReason.CALLER_FLAGGED_INVALID)
        valid_hr, valid_spo2 = True, True
    else:
        valid_hr = heart_rate_in_range(reading.heart_rate)
        valid_spo2 = spo2_in_range(reading.spo2)
        if not (valid_hr and valid_spo2):
            return Verdict.reject(RejectReason.OUT_OF_RANGE)

    entry = Entry(
        spo2=reading.spo2,
        heart_rate=reading.heart_rate,
        temp_c=reading.temp_c,
        temp_f=reading.temp_f,
        device=reading.device or default_device,
        device_timestamp=reading.timestamp if reading.timestamp is not None else received_at_ms,
        server_timestamp=received_at_ms,
        valid_hr=valid_hr,
        valid_spo2=valid_spo2,
    )
    return Verdict.accept(entry)
