"""Capacity calibrator.

Converts raw ``(percent, charge counter)`` readings into a calibrated
percentage with sub-integer precision while learning the battery's
effective full-charge capacity.

Two estimates cooperate:

- a fast real-time estimate, smoothed every time the OS-reported percent
  changes inside the reliable 15-95 % range
- a slow historical median over up to 50 samples taken at least five
  minutes apart during the last seven days, which bounds the drift of the
  real-time estimate

Calibration refines the OS value, it never overrides it: any result that
is out of range or more than two points away from the reported percent
falls back to the reported percent.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from pybatmon._constants import (
    CALIBRATION_MAX_PERCENT,
    CALIBRATION_MIN_PERCENT,
    KEY_CAPACITY_SAMPLES,
    MAX_SAMPLES,
    MIN_SAMPLE_INTERVAL_MS,
    MIN_SAMPLES,
    SAMPLE_RETENTION_MS,
)
from pybatmon.calibration.estimators import (
    implied_capacity,
    median_capacity,
    precise_percent,
    smooth_capacity,
    validate_against_median,
)
from pybatmon.models.reading import SensorReading
from pybatmon.models.samples import CalibrationState, CapacitySample
from pybatmon.store.document import (
    CalibrationStateDocument,
    KeyValueBackend,
    ListDocument,
    load_or_default,
    save_quietly,
)
from pybatmon.store.policy import now_ms, prune_samples

_logger = logging.getLogger(__name__)


def _in_calibration_range(percent: int) -> bool:
    return CALIBRATION_MIN_PERCENT <= percent <= CALIBRATION_MAX_PERCENT


class CapacityCalibrator:
    """Stateful capacity estimator.

    Persisted state (samples and calibration state) is loaded lazily on
    first use.  All public methods are serialized by one lock.
    """

    def __init__(self, backend: KeyValueBackend, *, clock: Callable[[], int] = now_ms) -> None:
        self._samples_document: ListDocument[CapacitySample] = ListDocument(
            backend, KEY_CAPACITY_SAMPLES, CapacitySample
        )
        self._state_document = CalibrationStateDocument(backend)
        self._clock = clock
        self._lock = threading.RLock()
        self._loaded = False
        self._samples: list[CapacitySample] = []
        self._state = CalibrationState()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._samples = sorted(load_or_default(self._samples_document, list), key=lambda s: s.timestamp)
        self._state = load_or_default(self._state_document, CalibrationState)
        self._loaded = True
        _logger.debug(
            "Calibration state loaded samples=%d capacity=%s last_percent=%s",
            len(self._samples),
            self._state.smoothed_capacity_mah,
            self._state.last_calibrated_system_percent,
        )

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def calibrate(self, reading: SensorReading) -> float:
        """Return the calibrated percent for *reading*.

        Invalid readings (non-positive percent or charge counter) are passed
        through as ``float(system_percent)`` without touching any state.
        """
        system_percent = reading.system_percent
        if system_percent <= 0 or reading.charge_counter_uah <= 0:
            _logger.debug(
                "Passing through invalid reading percent=%d charge_uah=%d",
                system_percent,
                reading.charge_counter_uah,
            )
            return float(system_percent)

        charge_mah = reading.charge_mah

        with self._lock:
            self._ensure_loaded()
            stored = self._store_sample(system_percent, charge_mah)
            self._update_estimate(system_percent, charge_mah, new_sample=stored)

            capacity = self._state.smoothed_capacity_mah
            if capacity is not None:
                value = precise_percent(charge_mah, capacity, system_percent)
                if value is not None:
                    return value
                _logger.debug(
                    "Calibrated value rejected percent=%d charge_mah=%.1f capacity=%.1f",
                    system_percent,
                    charge_mah,
                    capacity,
                )
            return float(system_percent)

    def _store_sample(self, system_percent: int, charge_mah: float) -> bool:
        """Keep a calibration sample unless it is out of range or too soon."""
        if not _in_calibration_range(system_percent) or charge_mah <= 0:
            return False

        now = self._clock()
        if self._samples and now - self._samples[-1].timestamp < MIN_SAMPLE_INTERVAL_MS:
            return False

        self._samples.append(CapacitySample(system_percent=system_percent, charge_mah=charge_mah, timestamp=now))
        self._samples = prune_samples(
            self._samples,
            now=now,
            retention_ms=SAMPLE_RETENTION_MS,
            max_samples=MAX_SAMPLES,
        )
        save_quietly(self._samples_document, list(self._samples))
        return True

    def _update_estimate(self, system_percent: int, charge_mah: float, *, new_sample: bool) -> None:
        """Real-time smoothing followed by historical median validation.

        The median check only runs when this reading changed something (a new
        sample or a new real-time update), or when no estimate exists yet, so
        repeating an identical reading leaves the state untouched.
        """
        previous = self._state
        capacity = previous.smoothed_capacity_mah
        last_percent = previous.last_calibrated_system_percent

        realtime_updated = system_percent != last_percent and _in_calibration_range(system_percent)
        if realtime_updated:
            capacity = smooth_capacity(capacity, implied_capacity(charge_mah, system_percent))
            last_percent = system_percent

        median = None
        if new_sample or realtime_updated or capacity is None:
            median = median_capacity(self._samples, MIN_SAMPLES)
        if median is not None and median > 0:
            capacity = validate_against_median(capacity, median)

        updated = CalibrationState(smoothed_capacity_mah=capacity, last_calibrated_system_percent=last_percent)
        if updated == previous:
            return
        self._state = updated
        _logger.debug(
            "Capacity estimate updated capacity=%s last_percent=%s median=%s",
            capacity,
            last_percent,
            median,
        )
        save_quietly(self._state_document, updated)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def estimated_capacity_mah(self) -> float | None:
        """Current capacity estimate in mAh, ``None`` before any calibration."""
        with self._lock:
            self._ensure_loaded()
            return self._state.smoothed_capacity_mah

    @property
    def sample_count(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._samples)

    @property
    def state(self) -> CalibrationState:
        with self._lock:
            self._ensure_loaded()
            return self._state

    def samples(self) -> list[CapacitySample]:
        with self._lock:
            self._ensure_loaded()
            return list(self._samples)

    def reset(self) -> None:
        """Forget everything learned (e.g. after a battery swap)."""
        with self._lock:
            self._samples = []
            self._state = CalibrationState()
            self._loaded = True
            save_quietly(self._samples_document, [])
            save_quietly(self._state_document, self._state)
