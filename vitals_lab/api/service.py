import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .models import Reading, RejectReason, Verdict
from .store import TelemetryStore
from .validation import DEFAULT_DEVICE, ValidationMode, validate_reading

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class MonotonicClock:
    """Wall-clock milliseconds that never go backwards."""

    def __init__(self, source: Callable[[], int] = wall_clock_ms) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._last, int(self._source()))
            return self._last


@dataclass
class IngestStats:
    accepted: int = 0
    skipped: int = 0
    malformed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"accepted": self.accepted, "skipped": self.skipped, "malformed": self.malformed}


class TelemetryService:
    """
    Validate-then-append as one unit, and consistent reads of the store.

    The store lock is held across stamping, validation and append so that
    ``serverTimestamp`` is non-decreasing in history order.
    """

    def __init__(
        self,
        store: TelemetryStore,
        *,
        mode: ValidationMode = ValidationMode.RANGE,
        recent_window: int = 300,
        default_device: str = DEFAULT_DEVICE,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.store = store
        self.mode = mode
        self.recent_window = recent_window
        self.default_device = default_device
        self.stats = IngestStats()
        self._clock = clock if clock is not None else MonotonicClock()

    def ingest(self, payload: Mapping[str, Any]) -> Verdict:
        reading = Reading.model_validate(dict(payload))
        with self.store.locked():
            verdict = validate_reading(
                reading,
                received_at_ms=self._clock(),
                mode=self.mode,
                default_device=self.default_device,
            )
            if verdict.accepted:
                self.store.append(verdict.entry)
                self.stats.accepted += 1
            else:
                self.stats.skipped += 1

        if verdict.accepted:
            logger.debug("Accepted reading from %s", verdict.entry.device)
        else:
            self._log_rejection(verdict.reason, reading)
        return verdict

    def record_malformed(self) -> None:
        with self.store.locked():
            self.stats.malformed += 1

    def query(self, window: Optional[int] = None) -> Dict[str, Any]:
        if window is None:
            window = self.recent_window
        latest, recent = self.store.snapshot(window)
        return {
            "latest": latest.to_wire() if latest is not None else None,
            "recent": [entry.to_wire() for entry in recent],
        }

    def health(self) -> Dict[str, Any]:
        with self.store.locked():
            return {
                "ok": True,
                "mode": self.mode.value,
                "history_size": len(self.store),
                "capacity": self.store.capacity,
                "has_latest": not self.store.is_empty,
                **self.stats.as_dict(),
            }

    def _log_rejection(self, reason: Optional[RejectReason], reading: Reading) -> None:
        logger.warning(
            "Invalid or out-of-range reading ignored (%s): spo2=%s heartRate=%s device=%s",
            reason.value if reason else "unknown",
            reading.spo2,
            reading.heart_rate,
            reading.device or self.default_device,
        )

