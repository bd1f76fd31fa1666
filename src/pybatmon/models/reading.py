"""Raw battery sensor reading model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pybatmon.ingestion.normalize import safe_bool, safe_int


class SensorReading(BaseModel):
    """One on-demand sample of the battery sensor.

    Values are taken as reported: ``system_percent`` may be out of range and
    ``charge_counter_uah`` may be zero or negative on some hardware.  The
    calibrator decides what to do with such readings.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    system_percent: int = Field(validation_alias=AliasChoices("system_percent", "systemPercent", "capacity"))
    """OS-reported battery percent (0-100)."""
    charge_counter_uah: int = Field(
        default=0,
        validation_alias=AliasChoices("charge_counter_uah", "chargeCounterMicroAh", "charge_now"),
    )
    """Remaining charge in micro-amp-hours, sign as reported."""
    charging: bool = Field(default=False, validation_alias=AliasChoices("charging", "isCharging"))

    @field_validator("system_percent", "charge_counter_uah", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int:
        parsed = safe_int(value)
        return 0 if parsed is None else parsed

    @field_validator("charging", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        parsed = safe_bool(value)
        return bool(parsed)

    @property
    def charge_mah(self) -> float:
        """Absolute remaining charge in milliamp-hours."""
        return abs(self.charge_counter_uah) / 1000.0
