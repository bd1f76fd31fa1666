"""End-to-end tests for :class:`BatteryMonitor`."""

from __future__ import annotations

from pathlib import Path

import pytest

from pybatmon import BatmonClosedError, BatteryMonitor, MonitorConfig, SensorReading
from pybatmon._constants import MS_PER_HOUR, STATUS_USER_PRESENT
from pybatmon.store.document import MemoryBackend

_MINUTE = 60 * 1000


class _Clock:
    def __init__(self, now: int = 100 * MS_PER_HOUR) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def _reading(percent: int, charging: bool = False) -> SensorReading:
    # 3200 mAh battery
    return SensorReading(system_percent=percent, charge_counter_uah=percent * 32_000, charging=charging)


def _messages(monitor: BatteryMonitor) -> list[str]:
    return [entry.split(" - ", 1)[1] for entry in monitor.events.entries()]


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def monitor(clock: _Clock) -> BatteryMonitor:
    return BatteryMonitor(MonitorConfig(), backend=MemoryBackend(), clock=clock)


@pytest.fixture
def precise_monitor(clock: _Clock) -> BatteryMonitor:
    return BatteryMonitor(MonitorConfig(precise_enabled=True), backend=MemoryBackend(), clock=clock)


# ------------------------------------------------------------------
# poll
# ------------------------------------------------------------------


def test_poll_records_coarse_point(monitor: BatteryMonitor, clock: _Clock) -> None:
    result = monitor.poll(_reading(80))

    assert result.calibrated_percent == pytest.approx(80.0)
    assert result.system_percent == 80
    assert result.charging is False
    assert result.estimated_capacity_mah == pytest.approx(3200.0)
    assert [(p.timestamp, p.level) for p in monitor.coarse.all()] == [(clock.now, 80)]
    assert len(monitor.precise) == 0


def test_poll_records_precise_point_when_enabled(precise_monitor: BatteryMonitor) -> None:
    precise_monitor.poll(_reading(80))

    [point] = precise_monitor.precise.all()
    assert point.level == pytest.approx(80.0)


def test_out_of_range_reading_not_recorded(precise_monitor: BatteryMonitor) -> None:
    result = precise_monitor.poll(_reading(120))

    assert result.calibrated_percent == 120.0
    assert len(precise_monitor.coarse) == 0
    assert len(precise_monitor.precise) == 0


def test_poll_logs_level_and_status_changes(monitor: BatteryMonitor, clock: _Clock) -> None:
    monitor.poll(_reading(80))
    clock.advance(_MINUTE)
    monitor.poll(_reading(79))
    clock.advance(_MINUTE)
    monitor.poll(_reading(79, charging=True))

    assert _messages(monitor) == [
        "Battery level: 80% (Discharging)",
        "Battery level changed: 80% -> 79%",
        "Battery status: Charging",
    ]


def test_poll_sysfs(monitor: BatteryMonitor, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pybatmon.monitor.read_battery", lambda name: _reading(64))

    result = monitor.poll_sysfs()

    assert result is not None
    assert result.system_percent == 64


def test_poll_sysfs_unreadable(monitor: BatteryMonitor, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pybatmon.monitor.read_battery", lambda name: None)

    assert monitor.poll_sysfs() is None
    assert len(monitor.coarse) == 0


# ------------------------------------------------------------------
# Status intervals
# ------------------------------------------------------------------


def test_user_present_opens_single_interval(monitor: BatteryMonitor, clock: _Clock) -> None:
    assert monitor.user_present() is not None
    assert monitor.user_present() is None

    assert len(monitor.status_store.open_intervals(STATUS_USER_PRESENT)) == 1
    assert _messages(monitor) == ["Device unlocked"]

    clock.advance(_MINUTE)
    assert monitor.screen_off() is True
    [interval] = monitor.statuses()
    assert interval.end == clock.now


def test_screen_off_without_user_present(monitor: BatteryMonitor) -> None:
    assert monitor.screen_off() is False


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------


def test_history_prefers_precise(precise_monitor: BatteryMonitor, clock: _Clock) -> None:
    precise_monitor.precise_enabled = False
    precise_monitor.poll(_reading(81))
    clock.advance(_MINUTE)
    precise_monitor.precise_enabled = True
    precise_monitor.poll(_reading(80))

    history = precise_monitor.history(24)

    assert [(p.standard_level, p.is_precise) for p in history] == [(81, False), (80, True)]


def test_zero_hour_window_is_not_the_default(monitor: BatteryMonitor, clock: _Clock) -> None:
    monitor.poll(_reading(80))
    monitor.user_present()
    monitor.screen_off()
    clock.advance(_MINUTE)
    monitor.poll(_reading(79))

    assert [p.standard_level for p in monitor.history(0)] == [79]
    assert monitor.statuses(0) == []
    assert len(monitor.history()) == 2

    assert monitor.apply_display_hours(0) == 2
    assert [p.level for p in monitor.coarse.all()] == [79]


def test_summary(monitor: BatteryMonitor, clock: _Clock) -> None:
    for percent in (80, 75, 70):
        monitor.poll(_reading(percent))
        clock.advance(30 * _MINUTE)

    summary = monitor.summary()

    assert summary.current_level == 70.0
    assert summary.usage_rate == pytest.approx(10.0)
    assert summary.target_percent == 20
    assert summary.hours_to_target == pytest.approx(5.0)


def test_apply_display_hours(monitor: BatteryMonitor, clock: _Clock) -> None:
    monitor.poll(_reading(80))
    monitor.user_present()
    monitor.screen_off()
    clock.advance(30 * MS_PER_HOUR)
    monitor.poll(_reading(60))

    assert monitor.apply_display_hours(24) == 2
    assert [p.level for p in monitor.coarse.all()] == [60]
    assert monitor.status_store.all() == []


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------


def test_closed_monitor_rejects_calls(monitor: BatteryMonitor) -> None:
    monitor.close()

    assert monitor.closed is True
    with pytest.raises(BatmonClosedError):
        monitor.poll(_reading(50))
    with pytest.raises(BatmonClosedError):
        monitor.history()


def test_context_manager_closes(clock: _Clock) -> None:
    with BatteryMonitor(backend=MemoryBackend(), clock=clock) as monitor:
        monitor.poll(_reading(50))

    assert monitor.closed is True


def test_open_persists_to_directory(tmp_path: Path) -> None:
    with BatteryMonitor.open(tmp_path, precise_enabled=True) as monitor:
        monitor.poll(_reading(50))

    assert (tmp_path / "battery_data.json").is_file()
    with BatteryMonitor.open(tmp_path) as reopened:
        assert len(reopened.coarse) == 1
        assert len(reopened.precise) == 1
        assert reopened.calibrator.estimated_capacity_mah == pytest.approx(3200.0)
        assert reopened.precise_enabled is False
