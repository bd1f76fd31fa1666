from __future__ import annotations

from datetime import datetime

from pybatmon.store.document import MemoryBackend
from pybatmon.store.eventlog import EventLog

_NOW = 1_767_268_800_000


def _clock() -> int:
    return _NOW


def _stamp() -> str:
    return datetime.fromtimestamp(_NOW / 1000).strftime("%Y-%m-%d %H:%M:%S")


def test_entry_format() -> None:
    log = EventLog(MemoryBackend(), clock=_clock)

    entry = log.log("Device unlocked")

    assert entry == f"{_stamp()} - Device unlocked"
    assert log.entries() == [entry]


def test_repeats_collapse_with_counter() -> None:
    log = EventLog(MemoryBackend(), clock=_clock)

    log.log("Battery level unchanged: 80%")
    log.log("Battery level unchanged: 80%")
    log.log("Battery level unchanged: 80%")

    assert log.entries() == [f"{_stamp()} - Battery level unchanged: 80% (+3)"]


def test_different_message_starts_new_entry() -> None:
    log = EventLog(MemoryBackend(), clock=_clock)

    log.log("Device unlocked")
    log.log("Device unlocked")
    log.log("Battery status: Charging")

    assert [entry.split(" - ", 1)[1] for entry in log.entries()] == [
        "Device unlocked (+2)",
        "Battery status: Charging",
    ]


def test_oldest_entries_dropped() -> None:
    log = EventLog(MemoryBackend(), max_entries=3, clock=_clock)

    for index in range(5):
        log.log(f"event {index}")

    assert [entry.split(" - ", 1)[1] for entry in log.entries()] == ["event 2", "event 3", "event 4"]


def test_entries_persisted() -> None:
    backend = MemoryBackend()
    EventLog(backend, clock=_clock).log("Device unlocked")

    assert EventLog(backend, clock=_clock).entries() == [f"{_stamp()} - Device unlocked"]


def test_clear() -> None:
    backend = MemoryBackend()
    log = EventLog(backend, clock=_clock)
    log.log("Device unlocked")

    log.clear()

    assert log.entries() == []
    assert EventLog(backend, clock=_clock).entries() == []
