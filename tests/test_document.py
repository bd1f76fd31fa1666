"""Tests for backends, documents and the store-boundary helpers."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from pybatmon._constants import KEY_LAST_SYSTEM_PERCENT, KEY_SMOOTHED_CAPACITY
from pybatmon.exceptions import BatmonStorageError, DocumentDecodeError
from pybatmon.models.samples import CalibrationState, CapacitySample
from pybatmon.store.document import (
    CalibrationStateDocument,
    JsonDirectoryBackend,
    ListDocument,
    MemoryBackend,
    load_or_default,
    save_quietly,
)


class _FailingBackend:
    def get(self, key: str) -> str | None:
        raise BatmonStorageError("read failed", key=key)

    def put(self, key: str, value: str) -> None:
        raise BatmonStorageError("write failed", key=key)

    def subscribe(self, listener: Callable[[str], None]) -> Callable[[], None]:
        return lambda: None

    def close(self) -> None:
        return None


# ------------------------------------------------------------------
# Backends
# ------------------------------------------------------------------


class TestMemoryBackend:
    def test_missing_key(self) -> None:
        assert MemoryBackend().get("nothing") is None

    def test_listener_notified(self) -> None:
        backend = MemoryBackend()
        seen: list[str] = []
        backend.subscribe(seen.append)

        backend.put("battery_data", "[]")

        assert seen == ["battery_data"]

    def test_unsubscribe(self) -> None:
        backend = MemoryBackend()
        seen: list[str] = []
        unsubscribe = backend.subscribe(seen.append)

        unsubscribe()
        backend.put("battery_data", "[]")

        assert seen == []

    def test_failing_listener_does_not_break_write(self) -> None:
        backend = MemoryBackend()
        seen: list[str] = []

        def _boom(key: str) -> None:
            raise RuntimeError(key)

        backend.subscribe(_boom)
        backend.subscribe(seen.append)
        backend.put("battery_data", "[]")

        assert backend.get("battery_data") == "[]"
        assert seen == ["battery_data"]

    def test_invalid_key_rejected(self) -> None:
        with pytest.raises(BatmonStorageError):
            MemoryBackend().put("../escape", "x")


class TestJsonDirectoryBackend:
    def test_round_trip(self, tmp_path: Path) -> None:
        backend = JsonDirectoryBackend(tmp_path / "state")

        backend.put("battery_data", "[1, 2]")

        assert (tmp_path / "state" / "battery_data.json").read_text(encoding="utf-8") == "[1, 2]"
        assert JsonDirectoryBackend(tmp_path / "state").get("battery_data") == "[1, 2]"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert JsonDirectoryBackend(tmp_path).get("battery_data") is None

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        backend = JsonDirectoryBackend(tmp_path)
        backend.put("event_log", "[]")
        backend.put("event_log", '["x"]')

        assert sorted(p.name for p in tmp_path.iterdir()) == ["event_log.json"]

    def test_write_failure_raises_storage_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(BatmonStorageError) as exc_info:
            JsonDirectoryBackend(blocker).put("battery_data", "[]")
        assert exc_info.value.key == "battery_data"


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


def test_list_document_uses_short_keys() -> None:
    backend = MemoryBackend()
    document = ListDocument(backend, "capacity_samples", CapacitySample)

    document.save([CapacitySample(system_percent=50, charge_mah=1600.0, timestamp=1)])

    assert json.loads(backend.get("capacity_samples") or "") == [{"percent": 50, "mah": 1600.0, "timestamp": 1}]
    assert document.load()[0].system_percent == 50


def test_list_document_blank_is_empty() -> None:
    backend = MemoryBackend({"capacity_samples": "  "})

    assert ListDocument(backend, "capacity_samples", CapacitySample).load() == []


def test_list_document_malformed_raises() -> None:
    backend = MemoryBackend({"capacity_samples": '{"not": "a list"}'})

    with pytest.raises(DocumentDecodeError):
        ListDocument(backend, "capacity_samples", CapacitySample).load()


def test_calibration_state_unset_written_as_sentinel() -> None:
    backend = MemoryBackend()

    CalibrationStateDocument(backend).save(CalibrationState())

    assert json.loads(backend.get(KEY_SMOOTHED_CAPACITY) or "") == -1
    assert json.loads(backend.get(KEY_LAST_SYSTEM_PERCENT) or "") == -1
    assert CalibrationStateDocument(backend).load() == CalibrationState()


def test_calibration_state_round_trip() -> None:
    backend = MemoryBackend()
    state = CalibrationState(smoothed_capacity_mah=3210.5, last_calibrated_system_percent=42)

    CalibrationStateDocument(backend).save(state)

    assert CalibrationStateDocument(backend).load() == state


# ------------------------------------------------------------------
# Store-boundary helpers
# ------------------------------------------------------------------


def test_load_or_default_on_malformed() -> None:
    backend = MemoryBackend({"battery_data": "garbage"})

    assert load_or_default(ListDocument(backend, "battery_data", CapacitySample), list) == []


def test_load_or_default_on_read_failure() -> None:
    document = ListDocument(_FailingBackend(), "battery_data", CapacitySample)

    assert load_or_default(document, list) == []


def test_save_quietly_reports_failure() -> None:
    document = ListDocument(_FailingBackend(), "battery_data", CapacitySample)

    assert save_quietly(document, []) is False


def test_save_quietly_reports_success() -> None:
    document = ListDocument(MemoryBackend(), "battery_data", CapacitySample)

    assert save_quietly(document, []) is True
