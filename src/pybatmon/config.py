"""Monitor configuration for pybatmon."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pybatmon.exceptions import BatmonConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise BatmonConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MonitorConfig:
    """Monitor configuration.

    Calibration policy (sample window, blend weights, deviation bounds) is
    fixed and lives in :mod:`pybatmon._constants`; only the user-facing
    knobs of the original app are configurable here.

    Parameters
    ----------
    storage_path : Path or None
        Directory holding one JSON document per persisted key.  ``None``
        keeps everything in memory.
    precise_enabled : bool
        Record the precise (calibrated) series and prefer it in merged
        queries.  Defaults to ``False``.
    display_hours : int
        Default history window in hours.  Applying it prunes older data.
    low_target_percent : int
        Discharge target used by time-to estimates.
    high_target_percent : int
        Charge target used by time-to estimates.
    sysfs_battery : str
        Name of the Linux power-supply device read by the sysfs ingestion
        helper (e.g. ``"BAT0"``).
    """

    storage_path: Path | None = None
    precise_enabled: bool = False
    display_hours: int = 48
    low_target_percent: int = 20
    high_target_percent: int = 80
    sysfs_battery: str = "BAT0"

    def __post_init__(self) -> None:
        if self.storage_path is not None and not isinstance(self.storage_path, Path):
            object.__setattr__(self, "storage_path", Path(self.storage_path))
        if self.display_hours <= 0:
            raise BatmonConfigError(f"display_hours must be positive, got {self.display_hours}")
        for name in ("low_target_percent", "high_target_percent"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise BatmonConfigError(f"{name} must be between 0 and 100, got {value}")
        if self.low_target_percent > self.high_target_percent:
            raise BatmonConfigError("low_target_percent must not exceed high_target_percent")

    @classmethod
    def from_env(cls, **overrides: Any) -> MonitorConfig:
        """Create configuration from environment variables.

        Reads optional ``PYBATMON_*`` variables.  Explicit keyword
        arguments override environment values.

        Returns
        -------
        MonitorConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_env = env.get("PYBATMON_STORAGE_PATH")
        if storage_env:
            config_kwargs["storage_path"] = Path(storage_env).expanduser()

        config_kwargs["precise_enabled"] = _env_bool(env.get("PYBATMON_PRECISE_ENABLED"), False)

        _ENV_INT_MAP = {
            "PYBATMON_DISPLAY_HOURS": "display_hours",
            "PYBATMON_LOW_TARGET_PERCENT": "low_target_percent",
            "PYBATMON_HIGH_TARGET_PERCENT": "high_target_percent",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        battery_env = env.get("PYBATMON_SYSFS_BATTERY")
        if battery_env:
            config_kwargs["sysfs_battery"] = battery_env.strip()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
