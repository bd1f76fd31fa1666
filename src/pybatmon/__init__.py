"""pybatmon - Battery capacity calibration and telemetry store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybatmon")
except PackageNotFoundError:
    __version__ = "0+local"
from pybatmon.calibration import CapacityCalibrator
from pybatmon.config import MonitorConfig
from pybatmon.exceptions import (
    BatmonClosedError,
    BatmonConfigError,
    BatmonError,
    BatmonStorageError,
    DocumentDecodeError,
)
from pybatmon.hybrid import HybridMerger
from pybatmon.models import (
    BatterySummary,
    CalibrationState,
    CapacitySample,
    CoarseDataPoint,
    HybridPoint,
    PreciseDataPoint,
    SensorReading,
    StatusInterval,
)
from pybatmon.monitor import BatteryMonitor, PollResult
from pybatmon.store import (
    CoarseSeriesStore,
    EventLog,
    IntervalStore,
    JsonDirectoryBackend,
    MemoryBackend,
    PreciseSeriesStore,
)

__all__ = [
    "__version__",
    "BatmonClosedError",
    "BatmonConfigError",
    "BatmonError",
    "BatmonStorageError",
    "BatteryMonitor",
    "BatterySummary",
    "CalibrationState",
    "CapacityCalibrator",
    "CapacitySample",
    "CoarseDataPoint",
    "CoarseSeriesStore",
    "DocumentDecodeError",
    "EventLog",
    "HybridMerger",
    "HybridPoint",
    "IntervalStore",
    "JsonDirectoryBackend",
    "MemoryBackend",
    "MonitorConfig",
    "PollResult",
    "PreciseDataPoint",
    "PreciseSeriesStore",
    "SensorReading",
    "StatusInterval",
]
