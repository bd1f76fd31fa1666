"""Pydantic models for pybatmon records.

All persisted records are frozen; stores replace records rather than
mutating them.
"""

from pybatmon.models.points import (
    CoarseDataPoint,
    HybridPoint,
    PreciseDataPoint,
    SeriesPoint,
    project,
    round_half_up,
)
from pybatmon.models.reading import SensorReading
from pybatmon.models.samples import CalibrationState, CapacitySample
from pybatmon.models.status import StatusInterval
from pybatmon.models.summary import BatterySummary

__all__ = [
    "BatterySummary",
    "CalibrationState",
    "CapacitySample",
    "CoarseDataPoint",
    "HybridPoint",
    "PreciseDataPoint",
    "SensorReading",
    "SeriesPoint",
    "StatusInterval",
    "project",
    "round_half_up",
]
