"""Short human-readable event log.

Keeps the last 40 entries formatted as ``"YYYY-mm-dd HH:MM:SS - message"``.
A message identical to the previous one replaces that entry with a fresh
timestamp and a repeat counter: ``"... - Battery level unchanged: 80% (+3)"``.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from datetime import datetime

from pybatmon._constants import KEY_EVENT_LOG, MAX_LOG_ENTRIES
from pybatmon.store.document import KeyValueBackend, ListDocument, load_or_default, save_quietly
from pybatmon.store.policy import now_ms, truncate_oldest

_logger = logging.getLogger(__name__)

_SEPARATOR = " - "
_COUNTER_RE = re.compile(r"^(?P<message>.*) \(\+(?P<count>\d+)\)$")


def _split_entry(entry: str) -> tuple[str, int] | None:
    """Return ``(message, repeat_count)`` of a stored entry."""
    _, sep, rest = entry.partition(_SEPARATOR)
    if not sep:
        return None
    match = _COUNTER_RE.match(rest)
    if match is None:
        return rest, 1
    return match.group("message"), int(match.group("count"))


class EventLog:
    """Bounded, persisted list of timestamped messages."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = KEY_EVENT_LOG,
        *,
        max_entries: int = MAX_LOG_ENTRIES,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._document: ListDocument[str] = ListDocument(backend, key, str)
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: list[str] = load_or_default(self._document, list)

    def _stamp(self) -> str:
        return datetime.fromtimestamp(self._clock() / 1000).strftime("%Y-%m-%d %H:%M:%S")

    def log(self, message: str) -> str:
        """Append *message* (or bump the previous identical one); returns the stored entry."""
        _logger.info("%s", message)
        stamp = self._stamp()
        with self._lock:
            last = _split_entry(self._entries[-1]) if self._entries else None
            if last is not None and last[0] == message:
                entry = f"{stamp}{_SEPARATOR}{message} (+{last[1] + 1})"
                self._entries[-1] = entry
            else:
                entry = f"{stamp}{_SEPARATOR}{message}"
                self._entries.append(entry)
                self._entries = truncate_oldest(self._entries, self._max_entries)
            save_quietly(self._document, list(self._entries))
        return entry

    def entries(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            save_quietly(self._document, [])
