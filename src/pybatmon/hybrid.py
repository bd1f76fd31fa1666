"""Hybrid merge of the coarse and precise series.

The precise series only exists from the moment precision mode was turned
on, so a history window usually starts before it.  The merger prefers
precise points and back-fills only the leading part of the window that the
precise series does not cover with coarse points.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pybatmon.models.points import HybridPoint, project
from pybatmon.store.policy import cutoff_ms, now_ms
from pybatmon.store.series import CoarseSeriesStore, PreciseSeriesStore

_logger = logging.getLogger(__name__)


class HybridMerger:
    """Read-only composition over a coarse and a precise series.

    ``precise_enabled`` may be a bool or a zero-argument callable, so the
    setting can change at runtime without rebuilding the merger.
    """

    def __init__(
        self,
        coarse: CoarseSeriesStore,
        precise: PreciseSeriesStore,
        *,
        precise_enabled: bool | Callable[[], bool] = True,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._coarse = coarse
        self._precise = precise
        self._precise_enabled = precise_enabled
        self._clock = clock

    @property
    def precise_enabled(self) -> bool:
        if callable(self._precise_enabled):
            return bool(self._precise_enabled())
        return self._precise_enabled

    def merged_query(self, hours: float, include_boundary_point: bool = False) -> list[HybridPoint]:
        """One time-ordered series for the last *hours* hours."""
        if not self.precise_enabled:
            return [project(point) for point in self._coarse.query(hours, include_boundary_point)]

        cutoff = cutoff_ms(self._clock(), hours)
        precise = self._precise.query(hours, include_boundary_point)
        oldest_precise = precise[0].timestamp if precise else None

        result: list[HybridPoint] = []
        if oldest_precise is None or oldest_precise > cutoff:
            coarse = self._coarse.query(hours, include_boundary_point)
            result.extend(
                project(point) for point in coarse if oldest_precise is None or point.timestamp < oldest_precise
            )
            _logger.debug(
                "Back-filled %d coarse points before precise start=%s",
                len(result),
                oldest_precise,
            )

        result.extend(project(point) for point in precise)
        # Stable: equal timestamps keep coarse-before-precise order.
        result.sort(key=lambda point: point.timestamp)
        return result
