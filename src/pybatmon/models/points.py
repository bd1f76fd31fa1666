"""Battery series records and the hybrid projection.

The coarse and precise series hold different record shapes.  Consumers
that want one view over both use :func:`project`, which maps either
shape onto a :class:`HybridPoint`.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from pydantic import AliasChoices, Field

from pybatmon.models._base import BatmonBaseModel


class CoarseDataPoint(BatmonBaseModel):
    """Integer battery level as reported by the OS."""

    timestamp: int
    level: int = Field(ge=0, le=100)
    charging: bool


class PreciseDataPoint(BatmonBaseModel):
    """Fractional battery level produced by the calibrator."""

    timestamp: int
    level: float = Field(ge=0, le=100, validation_alias=AliasChoices("level", "preciseLevel"))
    charging: bool


SeriesPoint = CoarseDataPoint | PreciseDataPoint


class HybridPoint(NamedTuple):
    """Common view over coarse and precise points."""

    timestamp: int
    standard_level: int
    level: float
    charging: bool
    is_precise: bool


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for levels >= 0."""
    return int(math.floor(value + 0.5))


def project(point: SeriesPoint) -> HybridPoint:
    """Map a coarse or precise point onto a :class:`HybridPoint`."""
    if isinstance(point, PreciseDataPoint):
        return HybridPoint(
            timestamp=point.timestamp,
            standard_level=round_half_up(point.level),
            level=point.level,
            charging=point.charging,
            is_precise=True,
        )
    return HybridPoint(
        timestamp=point.timestamp,
        standard_level=point.level,
        level=float(point.level),
        charging=point.charging,
        is_precise=False,
    )
