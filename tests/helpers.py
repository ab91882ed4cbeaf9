from vitals_lab.api.models import Entry

T0 = 1_700_000_000_000


class StepClock:
    """Deterministic millisecond clock advancing by ``step`` per call."""

    def __init__(self, start: int = T0, step: int = 1000) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


def make_entry(heart_rate: float = 72.0, spo2: float = 97.0, ts: int = T0) -> Entry:
    return Entry(
        spo2=spo2,
        heart_rate=heart_rate,
        temp_c=34.0,
        temp_f=93.2,
        device="esp32-max30102",
        device_timestamp=ts,
        server_timestamp=ts,
        valid_hr=True,
        valid_spo2=True,
    )
