"""Base model for persisted pybatmon records.

Every record inherits from :class:`BatmonBaseModel` which provides:

* frozen instances (records are immutable once written)
* ``populate_by_name`` so short JSON keys (``"percent"``, ``"mah"``) and
  descriptive attribute names are both accepted
* a ``model_validator(mode="after")`` that maps per-field numeric
  sentinels (``-1`` for "unset") to ``None``
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator


def is_negative(value: int | float) -> bool:
    """Return ``True`` when *value* is negative (e.g. ``-1`` sentinel)."""
    return value < 0


def is_unusable_quantity(value: int | float) -> bool:
    """Return ``True`` when *value* is not a finite positive number (NaN, inf, <= 0)."""
    return not math.isfinite(value) or value <= 0


class BatmonBaseModel(BaseModel):
    """Base for persisted records."""

    _SENTINEL_RULES: ClassVar[dict[str, Callable[..., bool]]] = {}
    """Per-field sentinel predicates.

    Subclasses declare ``{"field_name": predicate}`` pairs.  After
    construction the field is set to ``None`` when *predicate(value)* is
    ``True``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _normalise_sentinels(self) -> BatmonBaseModel:
        sentinel_rules: dict[str, Callable[..., bool]] = getattr(type(self), "_SENTINEL_RULES", {})
        for field_name, predicate in sentinel_rules.items():
            val = getattr(self, field_name, None)
            if val is not None and predicate(val):
                object.__setattr__(self, field_name, None)
        return self
