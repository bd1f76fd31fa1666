"""Battery monitor: owner of the calibrator and the telemetry stores."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pybatmon._constants import STATUS_USER_PRESENT
from pybatmon.analysis import summarize
from pybatmon.calibration.calibrator import CapacityCalibrator
from pybatmon.config import MonitorConfig
from pybatmon.exceptions import BatmonClosedError
from pybatmon.hybrid import HybridMerger
from pybatmon.ingestion.sysfs import read_battery
from pybatmon.models.points import HybridPoint
from pybatmon.models.reading import SensorReading
from pybatmon.models.status import StatusInterval
from pybatmon.models.summary import BatterySummary
from pybatmon.store.document import JsonDirectoryBackend, KeyValueBackend, MemoryBackend
from pybatmon.store.eventlog import EventLog
from pybatmon.store.intervals import IntervalStore
from pybatmon.store.policy import now_ms
from pybatmon.store.series import CoarseSeriesStore, PreciseSeriesStore

_logger = logging.getLogger(__name__)

#: Interval after which an unchanged level is noted in the event log.
_UNCHANGED_LOG_INTERVAL_MS = 60 * 1000


@dataclass(frozen=True, slots=True)
class PollResult:
    """Outcome of one sensor poll."""

    calibrated_percent: float
    system_percent: int
    charging: bool
    estimated_capacity_mah: float | None


class BatteryMonitor:
    """Owns one device's calibration state and telemetry.

    Usage::

        with BatteryMonitor.open("~/.local/share/pybatmon", precise_enabled=True) as monitor:
            result = monitor.poll(SensorReading(system_percent=80, charge_counter_uah=2_560_000))
            points = monitor.history(hours=24)

    Every store shares one :class:`~pybatmon.store.document.KeyValueBackend`;
    pass ``backend=`` to inject a different one.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        backend: KeyValueBackend | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config or MonitorConfig()
        if backend is None:
            if self._config.storage_path is not None:
                backend = JsonDirectoryBackend(self._config.storage_path)
            else:
                backend = MemoryBackend()
        self._backend = backend
        self._clock = clock
        self._precise_enabled = self._config.precise_enabled
        self._closed = False

        self._calibrator = CapacityCalibrator(backend, clock=clock)
        self._coarse = CoarseSeriesStore(backend, clock=clock)
        self._precise = PreciseSeriesStore(backend, clock=clock)
        self._statuses = IntervalStore(backend, clock=clock)
        self._events = EventLog(backend, clock=clock)
        self._merger = HybridMerger(
            self._coarse,
            self._precise,
            precise_enabled=lambda: self._precise_enabled,
            clock=clock,
        )

    @classmethod
    def open(cls, storage_path: Path | str, **overrides: Any) -> BatteryMonitor:
        """Open (or create) the persisted monitor state in *storage_path*."""
        config = MonitorConfig(storage_path=Path(storage_path).expanduser(), **overrides)
        return cls(config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the backend.  Further calls raise :class:`BatmonClosedError`."""
        if self._closed:
            return
        self._closed = True
        self._backend.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> BatteryMonitor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _require_open(self) -> None:
        if self._closed:
            raise BatmonClosedError("battery monitor is closed")

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def calibrator(self) -> CapacityCalibrator:
        return self._calibrator

    @property
    def coarse(self) -> CoarseSeriesStore:
        return self._coarse

    @property
    def precise(self) -> PreciseSeriesStore:
        return self._precise

    @property
    def status_store(self) -> IntervalStore:
        return self._statuses

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def precise_enabled(self) -> bool:
        return self._precise_enabled

    @precise_enabled.setter
    def precise_enabled(self, value: bool) -> None:
        self._precise_enabled = bool(value)

    # ------------------------------------------------------------------
    # Sensor pipeline
    # ------------------------------------------------------------------

    def poll(self, reading: SensorReading) -> PollResult:
        """Calibrate *reading* and append it to the series."""
        self._require_open()
        calibrated = self._calibrator.calibrate(reading)

        if 0 <= reading.system_percent <= 100:
            self._record_coarse(reading.system_percent, reading.charging)
        if self._precise_enabled and 0.0 <= calibrated <= 100.0:
            self._precise.record(calibrated, reading.charging)

        return PollResult(
            calibrated_percent=calibrated,
            system_percent=reading.system_percent,
            charging=reading.charging,
            estimated_capacity_mah=self._calibrator.estimated_capacity_mah,
        )

    def poll_sysfs(self) -> PollResult | None:
        """Poll the configured Linux power-supply battery, if readable."""
        self._require_open()
        reading = read_battery(self._config.sysfs_battery)
        if reading is None:
            _logger.debug("Battery %s not readable", self._config.sysfs_battery)
            return None
        return self.poll(reading)

    def _record_coarse(self, level: int, charging: bool) -> None:
        last = self._coarse.latest()
        if last is None:
            self._events.log(f"Battery level: {level}% ({'Charging' if charging else 'Discharging'})")
        else:
            if last.level != level:
                self._events.log(f"Battery level changed: {last.level}% -> {level}%")
            if last.charging != charging:
                self._events.log(f"Battery status: {'Charging' if charging else 'Discharging'}")
            unchanged = last.level == level and last.charging == charging
            if unchanged and self._clock() - last.timestamp > _UNCHANGED_LOG_INTERVAL_MS:
                self._events.log(f"Battery level unchanged: {level}%")
        self._coarse.record(level, charging)

    # ------------------------------------------------------------------
    # Status intervals
    # ------------------------------------------------------------------

    def user_present(self, ts: int | None = None) -> StatusInterval | None:
        """Open the ``user_present`` interval unless one is already open."""
        self._require_open()
        if self._statuses.open_intervals(STATUS_USER_PRESENT):
            return None
        self._events.log("Device unlocked")
        return self._statuses.start_open(STATUS_USER_PRESENT, ts)

    def screen_off(self, ts: int | None = None) -> bool:
        """Close the open ``user_present`` interval."""
        self._require_open()
        return self._statuses.end_most_recent_open(STATUS_USER_PRESENT, ts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def history(self, hours: float | None = None, include_boundary_point: bool = False) -> list[HybridPoint]:
        """Merged series for the last *hours* (default: configured display window)."""
        self._require_open()
        window = self._config.display_hours if hours is None else hours
        return self._merger.merged_query(window, include_boundary_point)

    def statuses(self, hours: float | None = None, names: Iterable[str] | None = None) -> list[StatusInterval]:
        """Status intervals overlapping the last *hours* (default: configured display window)."""
        self._require_open()
        return self._statuses.query(self._config.display_hours if hours is None else hours, names)

    def summary(self, hours: float | None = None, *, now: datetime | None = None) -> BatterySummary:
        """Current level, usage rate and time to the next target."""
        self._require_open()
        return summarize(
            self.history(hours),
            low_target=self._config.low_target_percent,
            high_target=self._config.high_target_percent,
            now=now,
        )

    def apply_display_hours(self, hours: float | None = None) -> int:
        """Drop data older than the display window; returns how many records went."""
        self._require_open()
        window = self._config.display_hours if hours is None else hours
        removed = self._coarse.clear_older_than(window)
        removed += self._precise.clear_older_than(window)
        removed += self._statuses.clear_older_than(window)
        _logger.debug("Pruned %d records older than %sh", removed, window)
        return removed
