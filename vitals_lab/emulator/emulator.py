# vitals_lab/emulator/emulator.py
#
# Vitals Lab – Pulse Oximeter Emulator
#
# Generates MAX30102-like readings (heart rate, SpO2, skin temperature) and
# streams them into the FastAPI ingestion service. Every so often the
# "finger" slips off the sensor and the board sends a garbage reading,
# which the API is expected to skip.

import json
import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import requests

from ..api.config import configure_logging

logger = logging.getLogger(__name__)

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000/api/telemetry")
DEVICE_ID = os.getenv("DEVICE_ID", "esp32-max30102")
SEND_INTERVAL_SECONDS = float(os.getenv("SEND_INTERVAL_SECONDS", "1.0"))
DROPOUT_PROBABILITY = float(os.getenv("DROPOUT_PROBABILITY", "0.03"))
BASE_PAYLOAD_PATH = os.getenv(
    "BASE_PAYLOAD_PATH",
    str(Path(__file__).parent / "pulse_emulator.json"),
)


def c_to_f(temp_c: float) -> float:
    return temp_c * 9.0 / 5.0 + 32.0


@dataclass
class PulseState:
    """
    Simple stateful emulator of a resting adult on a fingertip sensor.

    Target "healthy" ranges:
      - heart_rate:  ~60–85 bpm
      - spo2:        ~95–99 %
      - temp_c:      ~33–35 °C (skin, not core)
    """

    heart_rate: float
    spo2: float
    temp_c: float

    # resting setpoints
    HR_SETPOINT: float = 72.0
    SPO2_SETPOINT: float = 97.5
    TEMP_SETPOINT: float = 34.0

    @classmethod
    def from_file(cls, path: str) -> "PulseState":
        """Initialize from a JSON seed file."""
        with open(path, "r") as f:
            seed = json.load(f)
        return cls(
            heart_rate=seed.get("heartRate", 72.0),
            spo2=seed.get("spo2", 97.5),
            temp_c=seed.get("tempC", 34.0),
        )

    def _approach(self, value: float, target: float, gain: float) -> float:
        """Move value slightly toward target (1st-order lag)."""
        return value + gain * (target - value)

    def step(self) -> None:
        """
        Advance the emulator one sample.

        - Heart rate wanders around its setpoint with beat-to-beat noise.
        - SpO2 dips a little when heart rate climbs, capped at 100.
        - Skin temperature drifts slowly.
        """
        self.heart_rate = self._approach(self.heart_rate, self.HR_SETPOINT, 0.1)
        self.heart_rate += random.uniform(-2.5, 2.5)
        self.heart_rate = max(45.0, min(self.heart_rate, 140.0))

        hr_effect = -0.02 * max(0.0, self.heart_rate - self.HR_SETPOINT)
        self.spo2 = self._approach(self.spo2, self.SPO2_SETPOINT + hr_effect, 0.2)
        self.spo2 += random.uniform(-0.4, 0.4)
        self.spo2 = max(88.0, min(self.spo2, 100.0))

        self.temp_c = self._approach(self.temp_c, self.TEMP_SETPOINT, 0.05)
        self.temp_c += random.uniform(-0.05, 0.05)
        self.temp_c = max(30.0, min(self.temp_c, 38.0))

    def to_payload(self, timestamp_ms: Optional[int] = None) -> Dict:
        """Convert current state into the JSON shape the board posts."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return {
            "spo2": round(self.spo2, 1),
            "heartRate": round(self.heart_rate, 1),
            "tempC": round(self.temp_c, 2),
            "tempF": round(c_to_f(self.temp_c), 2),
            "device": DEVICE_ID,
            "timestamp": timestamp_ms,
        }


def dropout_payload(timestamp_ms: Optional[int] = None) -> Dict:
    """What the board sends when no finger is on the sensor."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return {
        "spo2": -1,
        "heartRate": 0,
        "device": DEVICE_ID,
        "timestamp": timestamp_ms,
    }


def next_payload(state: PulseState, dropout_probability: float = DROPOUT_PROBABILITY) -> Dict:
    state.step()
    if random.random() < dropout_probability:
        return dropout_payload()
    return state.to_payload()


def main() -> None:
    configure_logging(os.getenv("VITALS_LOG_LEVEL", "INFO"))
    state = PulseState.from_file(BASE_PAYLOAD_PATH)
    logger.info("Sending readings to %s as %s", API_URL, DEVICE_ID)

    while True:
        payload = next_payload(state)
        try:
            r = requests.post(API_URL, json=payload, timeout=2)
            logger.info("%s %s", r.status_code, payload)
        except requests.RequestException as exc:
            logger.warning("error sending: %s", exc)
        time.sleep(SEND_INTERVAL_SECONDS)


if __name__ == "__main__":
    main()
