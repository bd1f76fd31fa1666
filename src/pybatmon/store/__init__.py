"""Persistence and telemetry stores.

Every store owns one lock and one whole-document key in a
:class:`~pybatmon.store.document.KeyValueBackend`.
"""

from pybatmon.store.document import (
    CalibrationStateDocument,
    Document,
    JsonDirectoryBackend,
    KeyValueBackend,
    ListDocument,
    MemoryBackend,
)
from pybatmon.store.eventlog import EventLog
from pybatmon.store.intervals import IntervalStore
from pybatmon.store.series import CoarseSeriesStore, PreciseSeriesStore, SeriesStore

__all__ = [
    "CalibrationStateDocument",
    "CoarseSeriesStore",
    "Document",
    "EventLog",
    "IntervalStore",
    "JsonDirectoryBackend",
    "KeyValueBackend",
    "ListDocument",
    "MemoryBackend",
    "PreciseSeriesStore",
    "SeriesStore",
]
