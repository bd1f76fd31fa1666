"""Calibration sample and calibration state models."""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from pydantic import Field

from pybatmon.models._base import BatmonBaseModel, is_negative, is_unusable_quantity


class CapacitySample(BatmonBaseModel):
    """One raw observation used to infer total battery capacity.

    Serialized as ``{"percent": int, "mah": float, "timestamp": int}``.
    """

    system_percent: int = Field(alias="percent", ge=1, le=100)
    """OS-reported battery percent at sampling time."""
    charge_mah: float = Field(alias="mah", gt=0, allow_inf_nan=False)
    """Remaining charge in milliamp-hours."""
    timestamp: int
    """Epoch milliseconds."""

    @property
    def implied_capacity_mah(self) -> float:
        """Full-charge capacity implied by this sample alone."""
        return self.charge_mah * 100.0 / self.system_percent


class CalibrationState(BatmonBaseModel):
    """Learned capacity estimate and the percent it was last updated at.

    ``None`` means "unset".  Non-finite or non-positive capacities and
    negative percents (the persisted ``-1`` sentinel) load as ``None``.
    """

    _SENTINEL_RULES: ClassVar[dict[str, Callable[..., bool]]] = {
        "smoothed_capacity_mah": is_unusable_quantity,
        "last_calibrated_system_percent": is_negative,
    }

    smoothed_capacity_mah: float | None = None
    last_calibrated_system_percent: int | None = None

    @property
    def has_capacity(self) -> bool:
        return self.smoothed_capacity_mah is not None
