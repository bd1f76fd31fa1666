"""Custom exception hierarchy for pybatmon.

The calibration and telemetry core never surfaces these to its callers:
stores catch :class:`BatmonStorageError` at their boundary and degrade to
an empty or unchanged state. Only configuration and lifecycle misuse raise.
"""

from __future__ import annotations


class BatmonError(Exception):
    """Base exception for all pybatmon errors."""


class BatmonConfigError(BatmonError):
    """Invalid or missing configuration."""


class BatmonClosedError(BatmonError):
    """Operation attempted on a monitor that has been closed."""


class BatmonStorageError(BatmonError):
    """Backend read/write failure (filesystem, permissions, encoding)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class DocumentDecodeError(BatmonStorageError):
    """A persisted document exists but cannot be parsed."""
