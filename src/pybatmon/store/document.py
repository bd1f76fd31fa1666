"""Whole-document persistence.

Every store keeps its full state in memory and persists it as one JSON
document under a stable key, read-modify-write on every mutation.  Two
layers keep that contract swappable:

- :class:`KeyValueBackend` is the durable get/put facility (memory or a
  directory of JSON files).  It fires change listeners after every
  successful write.
- :class:`Document` turns one or more keys into a typed value
  (``load() -> T`` / ``save(T)``).

Backends raise :class:`~pybatmon.exceptions.BatmonStorageError`; documents
raise :class:`~pybatmon.exceptions.DocumentDecodeError` for content that
exists but cannot be parsed.  Stores never let either escape: they go
through :func:`load_or_default` and :func:`save_quietly`.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from pybatmon._constants import KEY_LAST_SYSTEM_PERCENT, KEY_SMOOTHED_CAPACITY, UNSET_SENTINEL
from pybatmon.exceptions import BatmonStorageError, DocumentDecodeError
from pybatmon.models.samples import CalibrationState

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ChangeListener = Callable[[str], None]

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_key(key: str) -> str:
    if not _KEY_PATTERN.match(key):
        raise BatmonStorageError(f"invalid storage key {key!r}", key=key)
    return key


# ------------------------------------------------------------------
# Backends
# ------------------------------------------------------------------


class KeyValueBackend(Protocol):
    """Durable string key/value facility with change notification."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]: ...

    def close(self) -> None: ...


class _NotifyingBackend:
    """Listener bookkeeping shared by the concrete backends."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []
        self._listeners_lock = threading.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, key: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key)
            except Exception:
                _logger.debug("Change listener failed for key=%s", key, exc_info=True)

    def close(self) -> None:
        with self._listeners_lock:
            self._listeners.clear()


class MemoryBackend(_NotifyingBackend):
    """In-process backend.  Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(_check_key(key))

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[_check_key(key)] = value
        self._notify(key)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JsonDirectoryBackend(_NotifyingBackend):
    """One ``<key>.json`` file per key inside *path*.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so readers see either the old or the new
    document, never a partial one.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _file(self, key: str) -> Path:
        return self._path / f"{_check_key(key)}.json"

    def get(self, key: str) -> str | None:
        file = self._file(key)
        try:
            return file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise BatmonStorageError(f"failed to read {file}: {exc}", key=key) from exc

    def put(self, key: str, value: str) -> None:
        file = self._file(key)
        try:
            self._path.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._path)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise BatmonStorageError(f"failed to write {file}: {exc}", key=key) from exc
        self._notify(key)


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


class Document(Protocol[T]):
    """A typed value persisted as a whole."""

    def load(self) -> T: ...

    def save(self, value: T) -> None: ...


class ListDocument(Generic[T]):
    """Ordered list of records stored as a JSON array under one key.

    Records are encoded with their aliases (``{"percent": .., "mah": ..}``)
    and decoded leniently: a missing key is an empty list.
    """

    def __init__(self, backend: KeyValueBackend, key: str, item_type: type[T]) -> None:
        self._backend = backend
        self._key = _check_key(key)
        self._adapter: TypeAdapter[list[T]] = TypeAdapter(list[item_type])  # type: ignore[valid-type]

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[T]:
        raw = self._backend.get(self._key)
        if raw is None or not raw.strip():
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as exc:
            raise DocumentDecodeError(f"malformed document {self._key!r}", key=self._key) from exc

    def save(self, value: list[T]) -> None:
        encoded = self._adapter.dump_json(value, by_alias=True).decode("utf-8")
        self._backend.put(self._key, encoded)


class CalibrationStateDocument:
    """Calibration state stored as two native numbers.

    ``smoothed_capacity`` holds a float and ``last_system_percent`` an int;
    ``-1`` in either means "unset".
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend
        self._float = TypeAdapter(float)
        self._int = TypeAdapter(int)

    def _read(self, key: str, adapter: TypeAdapter[Any]) -> Any:
        raw = self._backend.get(key)
        if raw is None or not raw.strip():
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            raise DocumentDecodeError(f"malformed document {key!r}", key=key) from exc

    def load(self) -> CalibrationState:
        return CalibrationState(
            smoothed_capacity_mah=self._read(KEY_SMOOTHED_CAPACITY, self._float),
            last_calibrated_system_percent=self._read(KEY_LAST_SYSTEM_PERCENT, self._int),
        )

    def save(self, value: CalibrationState) -> None:
        capacity = value.smoothed_capacity_mah
        percent = value.last_calibrated_system_percent
        self._backend.put(
            KEY_SMOOTHED_CAPACITY,
            self._float.dump_json(float(UNSET_SENTINEL) if capacity is None else capacity).decode("utf-8"),
        )
        self._backend.put(
            KEY_LAST_SYSTEM_PERCENT,
            self._int.dump_json(UNSET_SENTINEL if percent is None else percent).decode("utf-8"),
        )


# ------------------------------------------------------------------
# Store-boundary helpers
# ------------------------------------------------------------------


def load_or_default(document: Document[T], default: Callable[[], T]) -> T:
    """Load *document*, treating unreadable or malformed content as *default()*."""
    try:
        return document.load()
    except DocumentDecodeError:
        _logger.debug("Malformed document; starting empty", exc_info=True)
    except BatmonStorageError:
        _logger.warning("Document read failed; starting empty", exc_info=True)
    return default()


def save_quietly(document: Document[T], value: T) -> bool:
    """Save *value*; failures are logged and reported as ``False``."""
    try:
        document.save(value)
    except BatmonStorageError:
        _logger.warning("Document write failed", exc_info=True)
        return False
    return True
