import pytest
from pydantic import ValidationError

from vitals_lab.api.store import TelemetryStore

from .helpers import T0, make_entry


def _fill(store, heart_rates):
    entries = [make_entry(heart_rate=hr, ts=T0 + i) for i, hr in enumerate(heart_rates)]
    for entry in entries:
        store.append(entry)
    return entries


def test_new_store_is_empty():
    store = TelemetryStore(capacity=3)
    assert store.is_empty
    assert store.read_latest() is None
    assert store.read_recent(10) == []
    assert len(store) == 0


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        TelemetryStore(capacity=0)


def test_latest_tracks_last_append():
    store = TelemetryStore(capacity=3)
    _fill(store, [60, 61, 62, 63, 64])
    assert store.read_latest() == store.read_recent(1)[0]
    assert store.read_latest().heart_rate == 64


def test_latest_equals_last_history_entry_after_every_append():
    store = TelemetryStore(capacity=2)
    for i in range(6):
        entry = make_entry(heart_rate=60 + i, ts=T0 + i)
        store.append(entry)
        assert store.read_latest() is entry
        assert store.read_recent(store.capacity)[-1] is entry


def test_overflow_keeps_last_capacity_entries_in_order():
    store = TelemetryStore(capacity=4)
    entries = _fill(store, range(60, 70))
    assert len(store) == 4
    assert store.read_recent(100) == entries[-4:]


def test_three_readings_into_capacity_two():
    store = TelemetryStore(capacity=2)
    entries = _fill(store, [70, 72, 75])
    assert len(store) == 2
    assert store.read_recent(2) == entries[1:]


def test_latest_and_window_scenario():
    store = TelemetryStore(capacity=10)
    _fill(store, [70, 72, 75])
    assert store.read_latest().heart_rate == 75
    assert [e.heart_rate for e in store.read_recent(2)] == [72, 75]


def test_window_is_clamped_to_history_length():
    store = TelemetryStore(capacity=10)
    _fill(store, [70, 71, 72, 73])
    for k in range(0, 8):
        assert len(store.read_recent(k)) == min(k, 4)
    assert store.read_recent(-3) == []


def test_reads_do_not_mutate():
    store = TelemetryStore(capacity=10)
    _fill(store, [70, 71, 72])
    first = store.read_recent(2)
    second = store.read_recent(2)
    assert first == second
    assert len(store) == 3
    assert store.read_latest().heart_rate == 72


def test_returned_window_is_a_copy():
    store = TelemetryStore(capacity=10)
    _fill(store, [70, 71])
    window = store.read_recent(5)
    window.clear()
    assert len(store.read_recent(5)) == 2


def test_snapshot_returns_latest_and_window_together():
    store = TelemetryStore(capacity=10)
    entries = _fill(store, [70, 71, 72])
    latest, recent = store.snapshot(2)
    assert latest is entries[-1]
    assert recent == entries[1:]


def test_entries_are_immutable():
    entry = make_entry()
    with pytest.raises(ValidationError):
        entry.heart_rate = 10
