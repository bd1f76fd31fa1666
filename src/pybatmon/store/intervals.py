"""Named status interval store.

Records boolean device states (e.g. ``user_present``) independently of the
battery series.  At most one open interval per name is expected; the store
does not enforce it, callers do.
"""

from __future__ import annotations

import bisect
import logging
import threading
from collections.abc import Callable, Iterable

from pybatmon._constants import KEY_STATUS_DATA, MAX_STATUS_ENTRIES
from pybatmon.models.status import StatusInterval
from pybatmon.store.document import KeyValueBackend, ListDocument, load_or_default, save_quietly
from pybatmon.store.policy import (
    cutoff_ms,
    interval_overlaps_window,
    keep_interval_on_clear,
    now_ms,
    truncate_oldest,
)

_logger = logging.getLogger(__name__)


def _start_of(interval: StatusInterval) -> int:
    return interval.start


class IntervalStore:
    """Append-only store of named start/end intervals, ordered by start."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = KEY_STATUS_DATA,
        *,
        max_entries: int = MAX_STATUS_ENTRIES,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._document: ListDocument[StatusInterval] = ListDocument(backend, key, StatusInterval)
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._intervals: list[StatusInterval] = sorted(load_or_default(self._document, list), key=_start_of)

    def _persist(self) -> None:
        save_quietly(self._document, list(self._intervals))

    def add(self, name: str, start: int, end: int) -> StatusInterval:
        """Store an interval with explicit bounds (``end=0`` for open)."""
        interval = StatusInterval(name=name, start=start, end=end)
        with self._lock:
            position = bisect.bisect_right(self._intervals, interval.start, key=_start_of)
            self._intervals.insert(position, interval)
            self._intervals = truncate_oldest(self._intervals, self._max_entries)
            self._persist()
        return interval

    def start_open(self, name: str, ts: int | None = None) -> StatusInterval:
        """Open an ongoing interval for *name*."""
        return self.add(name, self._clock() if ts is None else ts, 0)

    def record_instant(self, name: str, ts: int | None = None) -> StatusInterval:
        """Store a one-off event (``start == end``)."""
        at = self._clock() if ts is None else ts
        return self.add(name, at, at)

    def end_most_recent_open(self, name: str, ts: int | None = None) -> bool:
        """Close the newest open interval for *name*.

        Returns ``False`` (and writes nothing) when none is open.
        """
        end = self._clock() if ts is None else ts
        with self._lock:
            for index in range(len(self._intervals) - 1, -1, -1):
                interval = self._intervals[index]
                if interval.name == name and interval.is_ongoing:
                    self._intervals[index] = interval.closed_at(end)
                    self._persist()
                    return True
        _logger.debug("No open interval to end for name=%s", name)
        return False

    def open_intervals(self, name: str | None = None) -> list[StatusInterval]:
        with self._lock:
            return [i for i in self._intervals if i.is_ongoing and (name is None or i.name == name)]

    def query(self, since_hours: float, names: Iterable[str] | None = None) -> list[StatusInterval]:
        """Intervals overlapping the last *since_hours* hours, by start.

        *names* restricts the result to those status names.
        """
        wanted = None if names is None else ({names} if isinstance(names, str) else set(names))
        with self._lock:
            cutoff = cutoff_ms(self._clock(), since_hours)
            return [
                interval
                for interval in self._intervals
                if interval_overlaps_window(interval, cutoff) and (wanted is None or interval.name in wanted)
            ]

    def all(self) -> list[StatusInterval]:
        with self._lock:
            return list(self._intervals)

    def clear_older_than(self, hours: float) -> int:
        """Drop closed intervals that started before the cutoff."""
        with self._lock:
            cutoff = cutoff_ms(self._clock(), hours)
            kept = [interval for interval in self._intervals if keep_interval_on_clear(interval, cutoff)]
            removed = len(self._intervals) - len(kept)
            self._intervals = kept
            self._persist()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._intervals)
