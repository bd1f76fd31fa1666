from __future__ import annotations

import pytest

from pybatmon._constants import MS_PER_HOUR
from pybatmon.hybrid import HybridMerger
from pybatmon.models.points import CoarseDataPoint, PreciseDataPoint
from pybatmon.store.document import MemoryBackend
from pybatmon.store.series import CoarseSeriesStore, PreciseSeriesStore

_NOW = 100 * MS_PER_HOUR


def _clock() -> int:
    return _NOW


def _h(hours: float) -> int:
    return int(hours * MS_PER_HOUR)


@pytest.fixture
def stores() -> tuple[CoarseSeriesStore, PreciseSeriesStore]:
    backend = MemoryBackend()
    return CoarseSeriesStore(backend, clock=_clock), PreciseSeriesStore(backend, clock=_clock)


def _fill(
    coarse: CoarseSeriesStore,
    precise: PreciseSeriesStore,
    coarse_hours: list[float],
    precise_hours: list[float],
) -> None:
    for index, hour in enumerate(coarse_hours):
        coarse.append(CoarseDataPoint(timestamp=_h(hour), level=90 - index, charging=False))
    for index, hour in enumerate(precise_hours):
        precise.append(PreciseDataPoint(timestamp=_h(hour), level=80.5 - index, charging=False))


def test_coarse_prefix_then_precise_suffix(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [90, 92, 94, 96, 98], [95, 97, 99])

    merged = HybridMerger(coarse, precise, clock=_clock).merged_query(24)

    timestamps = [p.timestamp for p in merged]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == len(timestamps)
    assert [(p.timestamp, p.is_precise) for p in merged] == [
        (_h(90), False),
        (_h(92), False),
        (_h(94), False),
        (_h(95), True),
        (_h(97), True),
        (_h(99), True),
    ]


def test_precise_values_projected(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [], [99])

    [point] = HybridMerger(coarse, precise, clock=_clock).merged_query(24)

    assert point.level == 80.5
    assert point.standard_level == 81
    assert point.is_precise is True


def test_empty_precise_returns_all_coarse(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [90, 95, 99], [])

    merged = HybridMerger(coarse, precise, clock=_clock).merged_query(24)

    assert [p.standard_level for p in merged] == [90, 89, 88]
    assert not any(p.is_precise for p in merged)


def test_precise_covering_window_excludes_coarse(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [80, 90], [70, 99])

    merged = HybridMerger(coarse, precise, clock=_clock).merged_query(24, include_boundary_point=True)

    assert [(p.timestamp, p.is_precise) for p in merged] == [(_h(70), True), (_h(99), True)]


def test_coarse_boundary_point_leads_back_filled_prefix(
    stores: tuple[CoarseSeriesStore, PreciseSeriesStore],
) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [60, 70, 90, 92, 96], [95, 99])

    merged = HybridMerger(coarse, precise, clock=_clock).merged_query(24, include_boundary_point=True)

    assert [(p.timestamp, p.is_precise) for p in merged] == [
        (_h(70), False),
        (_h(90), False),
        (_h(92), False),
        (_h(95), True),
        (_h(99), True),
    ]


def test_disabled_returns_coarse_only(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [90, 96], [95, 97])

    merged = HybridMerger(coarse, precise, precise_enabled=False, clock=_clock).merged_query(24)

    assert [(p.timestamp, p.is_precise) for p in merged] == [(_h(90), False), (_h(96), False)]


def test_enabled_flag_read_on_every_query(stores: tuple[CoarseSeriesStore, PreciseSeriesStore]) -> None:
    coarse, precise = stores
    _fill(coarse, precise, [90], [95])
    enabled = {"value": False}
    merger = HybridMerger(coarse, precise, precise_enabled=lambda: enabled["value"], clock=_clock)

    assert [p.is_precise for p in merger.merged_query(24)] == [False]
    enabled["value"] = True
    assert [p.is_precise for p in merger.merged_query(24)] == [False, True]
