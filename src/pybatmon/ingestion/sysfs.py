"""Linux power-supply sensor source.

Reads ``/sys/class/power_supply/<battery>/`` attributes:

- ``capacity``: OS-reported percent
- ``charge_now``: remaining charge in µAh (absent on batteries that only
  report ``energy_now``; the reading then carries a zero counter and the
  calibrator passes the percent through)
- ``status``: ``Charging``, ``Discharging``, ``Full``, ``Not charging`` ...
"""

from __future__ import annotations

import logging
from pathlib import Path

from pybatmon.ingestion.normalize import safe_int
from pybatmon.models.reading import SensorReading

_logger = logging.getLogger(__name__)

POWER_SUPPLY_ROOT = Path("/sys/class/power_supply")

_CHARGING_STATUSES = frozenset({"charging", "full"})


def _read_attribute(path: Path, name: str) -> str | None:
    try:
        return (path / name).read_text(encoding="ascii").strip()
    except (OSError, UnicodeDecodeError):
        _logger.debug("Cannot read %s/%s", path, name, exc_info=True)
        return None


def read_power_supply(path: Path | str) -> SensorReading | None:
    """Sample the battery at *path*; ``None`` when ``capacity`` is unreadable."""
    device = Path(path)
    capacity = safe_int(_read_attribute(device, "capacity"))
    if capacity is None:
        return None
    charge_now = safe_int(_read_attribute(device, "charge_now"))
    status = (_read_attribute(device, "status") or "").lower()
    return SensorReading(
        system_percent=capacity,
        charge_counter_uah=charge_now or 0,
        charging=status in _CHARGING_STATUSES,
    )


def read_battery(name: str = "BAT0", root: Path = POWER_SUPPLY_ROOT) -> SensorReading | None:
    """Sample the named battery under the power-supply class directory."""
    return read_power_supply(root / name)
