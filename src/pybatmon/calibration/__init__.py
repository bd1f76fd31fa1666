"""Battery capacity calibration."""

from pybatmon.calibration.calibrator import CapacityCalibrator
from pybatmon.calibration.estimators import implied_capacity, median_capacity

__all__ = [
    "CapacityCalibrator",
    "implied_capacity",
    "median_capacity",
]
