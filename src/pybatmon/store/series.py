"""Bounded, time-ordered battery series.

A series is a durable list: it is loaded once, mutated in memory under a
lock and written back as a whole after every mutation.  Two variants
exist:

- :class:`CoarseSeriesStore` holds integer OS-reported levels and drops
  redundant points arriving within 10 seconds of an identical one.
- :class:`PreciseSeriesStore` holds calibrated fractional levels and keeps
  every point.
"""

from __future__ import annotations

import bisect
import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from pybatmon._constants import (
    COARSE_DEDUP_WINDOW_MS,
    KEY_BATTERY_DATA,
    KEY_PRECISE_BATTERY_DATA,
    MAX_DATA_POINTS,
)
from pybatmon.models.points import CoarseDataPoint, PreciseDataPoint
from pybatmon.store.document import KeyValueBackend, ListDocument, load_or_default, save_quietly
from pybatmon.store.policy import cutoff_ms, is_redundant_coarse, now_ms, select_window, truncate_oldest

_logger = logging.getLogger(__name__)

P = TypeVar("P", CoarseDataPoint, PreciseDataPoint)


def _timestamp_of(point: CoarseDataPoint | PreciseDataPoint) -> int:
    return point.timestamp


class SeriesStore(Generic[P]):
    """Append-only, capacity-bounded ordered sequence of points.

    Points are kept in non-decreasing timestamp order.  A point older than
    the newest stored one is inserted at its ordered position.
    """

    point_type: type[P]

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str,
        *,
        max_points: int = MAX_DATA_POINTS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._document: ListDocument[P] = ListDocument(backend, key, self.point_type)
        self._max_points = max_points
        self._clock = clock
        self._lock = threading.RLock()
        self._points: list[P] = self._sorted(load_or_default(self._document, list))

    @staticmethod
    def _sorted(points: list[P]) -> list[P]:
        # Documents written by other tools may not be ordered.
        return sorted(points, key=_timestamp_of)

    def _should_append(self, previous: P | None, point: P) -> bool:
        return True

    def _persist(self) -> None:
        save_quietly(self._document, list(self._points))

    def append(self, point: P) -> bool:
        """Insert *point*; returns ``False`` when it was dropped as redundant."""
        with self._lock:
            position = bisect.bisect_right(self._points, point.timestamp, key=_timestamp_of)
            previous = self._points[position - 1] if position else None
            if not self._should_append(previous, point):
                _logger.debug("Skipping redundant point key=%s ts=%d", self._document.key, point.timestamp)
                return False
            self._points.insert(position, point)
            self._points = truncate_oldest(self._points, self._max_points)
            self._persist()
            return True

    def record(self, level: int | float, charging: bool) -> bool:
        """Append a point stamped with the current time."""
        return self.append(self.point_type(timestamp=self._clock(), level=level, charging=charging))

    def query(self, since_hours: float, include_boundary_point: bool = False) -> list[P]:
        """Points of the last *since_hours* hours, oldest first.

        With *include_boundary_point*, the newest point before the window is
        returned first so that a consumer can interpolate at the left edge.
        """
        with self._lock:
            cutoff = cutoff_ms(self._clock(), since_hours)
            return select_window(self._points, cutoff, include_boundary_point=include_boundary_point)

    def oldest_timestamp(self) -> int | None:
        with self._lock:
            return self._points[0].timestamp if self._points else None

    def latest(self) -> P | None:
        with self._lock:
            return self._points[-1] if self._points else None

    def all(self) -> list[P]:
        with self._lock:
            return list(self._points)

    def clear_older_than(self, hours: float) -> int:
        """Permanently drop points older than *hours*; returns how many were removed."""
        with self._lock:
            cutoff = cutoff_ms(self._clock(), hours)
            kept = [point for point in self._points if point.timestamp >= cutoff]
            removed = len(self._points) - len(kept)
            self._points = kept
            self._persist()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)


class CoarseSeriesStore(SeriesStore[CoarseDataPoint]):
    """Integer levels sourced from the OS, deduplicated within 10 seconds."""

    point_type = CoarseDataPoint

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = KEY_BATTERY_DATA,
        *,
        max_points: int = MAX_DATA_POINTS,
        dedup_window_ms: int = COARSE_DEDUP_WINDOW_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._dedup_window_ms = dedup_window_ms
        super().__init__(backend, key, max_points=max_points, clock=clock)

    def _should_append(self, previous: CoarseDataPoint | None, point: CoarseDataPoint) -> bool:
        return not is_redundant_coarse(previous, point, self._dedup_window_ms)


class PreciseSeriesStore(SeriesStore[PreciseDataPoint]):
    """Calibrated fractional levels; every point is kept."""

    point_type = PreciseDataPoint

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = KEY_PRECISE_BATTERY_DATA,
        *,
        max_points: int = MAX_DATA_POINTS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__(backend, key, max_points=max_points, clock=clock)
