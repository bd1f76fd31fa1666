"""Capacity estimation math.

Pure functions over samples and estimates; the stateful bookkeeping lives
in :mod:`pybatmon.calibration.calibrator`.
"""

from __future__ import annotations

import statistics
from collections.abc import Sequence

from pybatmon._constants import (
    MAX_DEVIATION_PERCENT,
    MEDIAN_BLEND_MEDIAN_WEIGHT,
    MEDIAN_BLEND_REALTIME_WEIGHT,
    MEDIAN_DEVIATION_TRIGGER,
    MIN_SAMPLES,
    SMOOTHING_NEW_WEIGHT,
    SMOOTHING_OLD_WEIGHT,
)
from pybatmon.models.samples import CapacitySample


def implied_capacity(charge_mah: float, system_percent: int) -> float:
    """Full-charge capacity implied by one reading: ``charge / (percent/100)``."""
    return charge_mah / (system_percent / 100.0)


def median_capacity(samples: Sequence[CapacitySample], min_samples: int = MIN_SAMPLES) -> float | None:
    """Median implied capacity, or ``None`` with fewer than *min_samples* samples.

    Even-sized sets return the mean of the two middle values.
    """
    if len(samples) < min_samples:
        return None
    return statistics.median(sample.implied_capacity_mah for sample in samples)


def smooth_capacity(previous: float | None, implied: float) -> float:
    """Exponential smoothing of the real-time estimate (75 % old, 25 % new)."""
    if previous is None:
        return implied
    return previous * SMOOTHING_OLD_WEIGHT + implied * SMOOTHING_NEW_WEIGHT


def validate_against_median(realtime: float | None, median: float) -> float:
    """Pull the real-time estimate toward the historical median.

    An unset estimate adopts the median.  An estimate more than 10 %
    (relative) away from it is blended 70/30 with it; closer estimates are
    returned unchanged.
    """
    if realtime is None:
        return median
    deviation = abs(realtime - median) / median
    if deviation > MEDIAN_DEVIATION_TRIGGER:
        return realtime * MEDIAN_BLEND_REALTIME_WEIGHT + median * MEDIAN_BLEND_MEDIAN_WEIGHT
    return realtime


def precise_percent(
    charge_mah: float,
    capacity_mah: float,
    system_percent: int,
    max_deviation: float = MAX_DEVIATION_PERCENT,
) -> float | None:
    """Calibrated percent, or ``None`` when it fails the sanity checks.

    The result must lie in [0, 100] and within *max_deviation* points of
    the OS-reported percent.
    """
    value = charge_mah / capacity_mah * 100.0
    if not 0.0 <= value <= 100.0:
        return None
    if abs(value - system_percent) > max_deviation:
        return None
    return value
