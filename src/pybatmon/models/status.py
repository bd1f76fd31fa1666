"""Named status interval model."""

from __future__ import annotations

from pydantic import Field, field_validator

from pybatmon.models._base import BatmonBaseModel


class StatusInterval(BatmonBaseModel):
    """A named boolean-state interval.

    ``end == 0`` marks an ongoing interval; ``start == end > 0`` marks a
    one-off event.
    """

    name: str
    start: int
    end: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def _non_empty_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("name must be non-empty")
        return name

    @property
    def is_ongoing(self) -> bool:
        return self.end == 0

    @property
    def is_instant(self) -> bool:
        return self.end > 0 and self.start == self.end

    def closed_at(self, end: int) -> StatusInterval:
        """Return a copy of this interval ending at *end*."""
        return self.model_copy(update={"end": end})
