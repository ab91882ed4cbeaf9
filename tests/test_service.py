import logging
from concurrent.futures import ThreadPoolExecutor

from vitals_lab.api.models import RejectReason
from vitals_lab.api.service import MonotonicClock, TelemetryService
from vitals_lab.api.store import TelemetryStore
from vitals_lab.api.validation import ValidationMode

from .helpers import T0, StepClock


def test_accepted_reading_is_stored_with_server_time(service, store):
    verdict = service.ingest({"spo2": 97, "heartRate": 70})
    assert verdict.accepted
    assert store.read_latest() == verdict.entry
    assert verdict.entry.server_timestamp == T0


def test_rejected_reading_on_empty_store_leaves_it_empty(service, store):
    verdict = service.ingest({"spo2": -1, "heartRate": 80})
    assert verdict.reason is RejectReason.OUT_OF_RANGE
    assert store.is_empty
    assert store.read_latest() is None
    assert service.query()["latest"] is None


def test_rejection_does_not_mutate_populated_store(service, store):
    service.ingest({"spo2": 97, "heartRate": 70})
    service.ingest({"spo2": 98, "heartRate": 72})
    latest_before = store.read_latest()
    history_before = store.read_recent(store.capacity)

    service.ingest({"spo2": 101, "heartRate": 72})
    service.ingest({"heartRate": "fast"})

    assert store.read_latest() is latest_before
    assert store.read_recent(store.capacity) == history_before


def test_rejection_is_logged(service, caplog):
    with caplog.at_level(logging.WARNING, logger="vitals_lab.api.service"):
        service.ingest({"spo2": 97, "heartRate": 0})
    assert "out_of_range" in caplog.text


def test_server_timestamps_never_decrease():
    readings = iter([T0 + 5000, T0 + 1000, T0 + 7000, T0 + 6000])
    clock = MonotonicClock(source=lambda: next(readings))
    service = TelemetryService(TelemetryStore(capacity=10), clock=clock)
    for hr in (70, 71, 72, 73):
        service.ingest({"spo2": 97, "heartRate": hr})
    stamps = [e.server_timestamp for e in service.store.read_recent(10)]
    assert stamps == [T0 + 5000, T0 + 5000, T0 + 7000, T0 + 7000]
    assert stamps == sorted(stamps)


def test_query_uses_configured_window_by_default(service):
    for hr in (70, 71, 72, 73, 74):
        service.ingest({"spo2": 97, "heartRate": hr})
    body = service.query()
    assert [e["heartRate"] for e in body["recent"]] == [72.0, 73.0, 74.0]
    assert body["latest"]["heartRate"] == 74.0
    assert service.query(0)["recent"] == []
    assert len(service.query(50)["recent"]) == 5


def test_query_serializes_wire_names(service):
    service.ingest({"spo2": 97, "heartRate": 70, "tempC": 34.5, "timestamp": 42})
    latest = service.query()["latest"]
    assert latest == {
        "spo2": 97.0,
        "heartRate": 70.0,
        "tempC": 34.5,
        "tempF": None,
        "device": "esp32-max30102",
        "deviceTimestamp": 42,
        "serverTimestamp": T0,
        "validHR": True,
        "validSPO2": True,
    }


def test_provenance_service_stores_flagged_reading():
    service = TelemetryService(
        TelemetryStore(capacity=3), mode=ValidationMode.PROVENANCE, clock=StepClock()
    )
    assert service.ingest({"spo2": 120, "heartRate": 70, "validHR": 1, "validSPO2": 1}).accepted
    assert not service.ingest({"spo2": 97, "heartRate": 70}).accepted
    assert len(service.store) == 1


def test_health_reports_counters(service):
    service.ingest({"spo2": 97, "heartRate": 70})
    service.ingest({"spo2": 97, "heartRate": 700})
    service.record_malformed()
    health = service.health()
    assert health["accepted"] == 1
    assert health["skipped"] == 1
    assert health["malformed"] == 1
    assert health["history_size"] == 1
    assert health["capacity"] == 5
    assert health["has_latest"] is True
    assert health["mode"] == "range"


def test_concurrent_ingest_and_query_keep_store_consistent():
    capacity = 50
    service = TelemetryService(TelemetryStore(capacity=capacity), recent_window=20)
    payloads = [
        {"spo2": 97, "heartRate": 60 + i % 100} if i % 7 else {"spo2": 97, "heartRate": 0}
        for i in range(400)
    ]

    def submit(payload):
        service.ingest(payload)
        body = service.query()
        if body["recent"]:
            assert body["latest"] == body["recent"][-1]

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(submit, payloads))

    accepted = sum(1 for p in payloads if p["heartRate"] > 0)
    store = service.store
    assert len(store) == min(accepted, capacity)
    history = store.read_recent(capacity)
    assert store.read_latest() is history[-1]
    stamps = [e.server_timestamp for e in history]
    assert stamps == sorted(stamps)
    assert service.stats.accepted == accepted
    assert service.stats.accepted + service.stats.skipped == len(payloads)
