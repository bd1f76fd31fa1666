"""Usage summary model produced by :mod:`pybatmon.analysis`."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BatterySummary(BaseModel):
    """Current level, usage rate and time-to-target for a history window.

    Every field except ``charging`` is ``None`` (or empty text) when the
    window holds too little data to compute it.
    """

    model_config = ConfigDict(frozen=True)

    current_level: float | None = None
    charging: bool = False
    usage_rate: float | None = None
    """Percent per hour over the most recent continuous period."""
    target_percent: int | None = None
    hours_to_target: float | None = None
    hours_to_text: str = ""
    end_time_text: str = ""

    @property
    def current_percent_text(self) -> str:
        if self.current_level is None:
            return "-%"
        return f"{self.current_level:.0f}%"
