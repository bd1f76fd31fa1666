"""Usage analysis over a battery series.

Works on any sequence of points exposing ``timestamp`` (epoch ms),
``level`` and ``charging``: coarse points, precise points or merged
:class:`~pybatmon.models.HybridPoint` values.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Protocol

from pybatmon._constants import MS_PER_HOUR
from pybatmon.models.points import round_half_up
from pybatmon.models.summary import BatterySummary

_MS_PER_MINUTE = 60 * 1000


class _LevelPoint(Protocol):
    @property
    def timestamp(self) -> int: ...

    @property
    def level(self) -> int | float: ...

    @property
    def charging(self) -> bool: ...


def usage_rate(points: Sequence[_LevelPoint], min_minutes: int, max_minutes: int | None = None) -> float | None:
    """Charge or discharge rate in percent per hour.

    Looks back from the newest point over the most recent period sharing its
    charging state.  One point of the opposite state is tolerated inside the
    period (ten when *max_minutes* is given, to find a long enough span).
    Returns ``None`` with fewer than two points, a period shorter than
    *min_minutes*, or no level change in the expected direction.
    """
    if len(points) < 2:
        return None

    charging_period = points[-1].charging
    other_periods_allowed = 10 if max_minutes is not None else 1

    end: _LevelPoint | None = None
    start: _LevelPoint | None = None
    for point in reversed(points):
        if point.charging == charging_period:
            if end is None:
                end = point
                continue
            start = point
            if max_minutes is not None and end.timestamp - start.timestamp >= max_minutes * _MS_PER_MINUTE:
                break
        elif end is not None:
            other_periods_allowed -= 1
            if other_periods_allowed < 0:
                break

    if start is None or end is None:
        return None

    span_ms = end.timestamp - start.timestamp
    if charging_period:
        level_diff = end.level - start.level
    else:
        level_diff = start.level - end.level

    if span_ms < min_minutes * _MS_PER_MINUTE or level_diff <= 0:
        return None
    return level_diff / (span_ms / MS_PER_HOUR)


def target_percent(low: int, high: int, level: float, charging: bool) -> int:
    """Level the battery is heading to: *high* (or 100) while charging, *low* (or 0) otherwise."""
    if charging:
        return 100 if level > high else high
    if level < low:
        return 0
    return low


def format_time_estimate(hours: float, target: int | None = None) -> str:
    """Format a duration like ``"2h15m to 20%"``, ``"45m to Empty"`` or ``"1d 3h to Full"``."""
    if hours < 0:
        return ""

    total_minutes = round_half_up(hours * 60)
    h, m = divmod(total_minutes, 60)

    suffix = ""
    if target is not None:
        if 0 < target < 100:
            suffix = f" to {target}%"
        elif target == 100:
            suffix = " to Full"
        elif target == 0:
            suffix = " to Empty"

    if h >= 24:
        d, h = divmod(h, 24)
        if h == 0:
            return f"{d}d{suffix}"
        return f"{d}d {h}h{suffix}"
    if h > 0:
        return f"{h}h{m:02d}m{suffix}"
    return f"{m}m{suffix}"


def format_end_time(hours: float, now: datetime | None = None) -> str:
    """Wall-clock time *hours* from *now*: ``"14:30"`` today, ``"Mon @ 14:30"`` otherwise."""
    start = now or datetime.now()
    end = start + timedelta(milliseconds=round_half_up(hours * MS_PER_HOUR))
    clock_text = f"{end.hour}:{end.minute:02d}"
    if end.date() == start.date():
        return clock_text
    return f"{end:%a} @ {clock_text}"


def summarize(
    points: Sequence[_LevelPoint],
    *,
    low_target: int = 20,
    high_target: int = 80,
    min_minutes: int = 10,
    max_minutes: int | None = 10,
    now: datetime | None = None,
) -> BatterySummary:
    """Current level, usage rate and time to the next target."""
    if not points:
        return BatterySummary()

    last = points[-1]
    level = float(last.level)
    target = target_percent(low_target, high_target, level, last.charging)
    rate = usage_rate(points, min_minutes, max_minutes)
    if rate is None:
        return BatterySummary(current_level=level, charging=last.charging, target_percent=target)

    hours = abs(level - target) / rate
    return BatterySummary(
        current_level=level,
        charging=last.charging,
        usage_rate=rate,
        target_percent=target,
        hours_to_target=hours,
        hours_to_text=format_time_estimate(hours, target),
        end_time_text=format_end_time(hours, now),
    )
