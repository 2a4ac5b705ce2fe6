from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import date
from typing import Callable, Dict, Hashable, List, Tuple

from ..core.constants import OCCURRENCE_CACHE_MAX_ENTRIES
from .model import Occurrence

CacheKey = Tuple[int, date, date, Hashable]


class OccurrenceCache:
    """Resolved occurrences per (pattern_id, range_start, range_end, inputs).

    ``inputs`` is whatever the value was computed from, normally the pattern
    and its exceptions, so a caller holding stale rows never reads or writes
    the entry of a caller holding fresh ones. Pattern and exception mutations
    must still call ``invalidate`` for the pattern. A value computed while an
    invalidation happened is returned but not stored.

    At most ``max_entries`` ranges are kept; the least recently used goes first.
    """

    def __init__(self, max_entries: int = OCCURRENCE_CACHE_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: "OrderedDict[CacheKey, Tuple[Occurrence, ...]]" = OrderedDict()
        self._generations: Dict[int, int] = {}

    def get_or_compute(
        self,
        pattern_id: int,
        range_start: date,
        range_end: date,
        compute: Callable[[], List[Occurrence]],
        *,
        inputs: Hashable = None,
    ) -> List[Occurrence]:
        pattern_id = int(pattern_id)
        key = (pattern_id, range_start, range_end, inputs)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
            generation = self._generations.get(pattern_id, 0)
        if cached is not None:
            return list(cached)

        value = tuple(compute())
        with self._lock:
            if self._generations.get(pattern_id, 0) == generation:
                self._entries[key] = value
                self._entries.move_to_end(key)
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)
        return list(value)

    def invalidate(self, pattern_id: int) -> None:
        pattern_id = int(pattern_id)
        with self._lock:
            self._generations[pattern_id] = self._generations.get(pattern_id, 0) + 1
            for key in [k for k in self._entries if k[0] == pattern_id]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            for pattern_id in {k[0] for k in self._entries}:
                self._generations[pattern_id] = self._generations.get(pattern_id, 0) + 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
