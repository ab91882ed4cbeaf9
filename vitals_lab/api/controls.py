"""
Small shared values next to the telemetry store: the LED flag the
dashboard toggles and the last standalone temperature a board posted.
Each is one mutable value behind its own lock.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class LedState:
    def __init__(self, initial: bool = False) -> None:
        self._state = bool(initial)
        self._lock = threading.Lock()

    def get(self) -> bool:
        with self._lock:
            return self._state

    def set(self, state) -> bool:
        with self._lock:
            self._state = bool(state)
            logger.info("LED state updated: %s", self._state)
            return self._state


class LatestTemperature:
    def __init__(self) -> None:
        self._value: Optional[float] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[float]:
        with self._lock:
            return self._value

    def set(self, value: float) -> float:
        with self._lock:
            self._value = value
            logger.info("Updated temperature: %s°C", value)
            return value
