"""Deterministic retention and window policy.

This module contains *no* persistence or locking.  Stores call these pure
functions so that dedup, eviction and window rules are testable on plain
lists.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Protocol, TypeVar

from pybatmon.ingestion.normalize import hours_to_ms
from pybatmon.models.points import CoarseDataPoint
from pybatmon.models.samples import CapacitySample
from pybatmon.models.status import StatusInterval


class _Timestamped(Protocol):
    @property
    def timestamp(self) -> int: ...


TPoint = TypeVar("TPoint", bound=_Timestamped)
TItem = TypeVar("TItem")


def now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def cutoff_ms(now: int, hours: float) -> int:
    """Start of a window that ends at *now* and spans *hours*."""
    return now - hours_to_ms(hours)


def is_redundant_coarse(previous: CoarseDataPoint | None, incoming: CoarseDataPoint, window_ms: int) -> bool:
    """Whether *incoming* repeats *previous* within *window_ms*.

    Both level and charging state must match; any change is always kept.
    """
    if previous is None:
        return False
    if incoming.timestamp - previous.timestamp >= window_ms:
        return False
    return previous.level == incoming.level and previous.charging == incoming.charging


def truncate_oldest(items: list[TItem], max_items: int) -> list[TItem]:
    """Keep the newest *max_items* entries of an ordered list."""
    if len(items) <= max_items:
        return items
    return items[len(items) - max_items :]


def select_window(points: Sequence[TPoint], cutoff: int, *, include_boundary_point: bool = False) -> list[TPoint]:
    """Points with ``timestamp >= cutoff``.

    With *include_boundary_point*, the newest point strictly before the
    cutoff is prepended so callers can interpolate at the left edge.  It is
    only added when at least one point falls inside the window.
    """
    result: list[TPoint] = []
    previous: TPoint | None = None
    for point in points:
        if point.timestamp < cutoff:
            previous = point
            continue
        if include_boundary_point and previous is not None and not result:
            result.append(previous)
            previous = None
        result.append(point)
    return result


def prune_samples(
    samples: list[CapacitySample],
    *,
    now: int,
    retention_ms: int,
    max_samples: int,
) -> list[CapacitySample]:
    """Drop samples older than the retention window, then cap the count."""
    cutoff = now - retention_ms
    kept = [sample for sample in samples if sample.timestamp >= cutoff]
    return truncate_oldest(kept, max_samples)


def interval_overlaps_window(interval: StatusInterval, cutoff: int) -> bool:
    """Whether *interval* overlaps a window starting at *cutoff* and ending now.

    Intervals that start inside the window, end inside it, or are still
    open all overlap.
    """
    if interval.start >= cutoff:
        return True
    if interval.end > 0 and interval.end >= cutoff:
        return True
    return interval.is_ongoing


def keep_interval_on_clear(interval: StatusInterval, cutoff: int) -> bool:
    """Retention rule for pruning: open intervals are never dropped by age."""
    return interval.start >= cutoff or interval.is_ongoing
