from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from threading import Lock
from typing import Any

from app.chapterdesk.cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    fetched_at: float
    generation: int


class QueryCache:
    """
    Read cache keyed by (entity_type, *params).

    Entries are only ever filled by fetches and dropped by `invalidate`;
    mutation responses are never written in. A fetch that started before an
    invalidation of its entity type is not stored, so a slow list query can't
    resurrect pre-mutation data.

    Expired entries are dropped when they are next looked up, and the oldest
    entries go first once `max_entries` is reached.
    """

    def __init__(
        self,
        ttl_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 2048,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = Lock()
        self._entries: OrderedDict[tuple, _Entry] = OrderedDict()
        self._generations: dict[Hashable, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _generation(self, entity: Hashable) -> int:
        return self._generations.get(entity, 0)

    def _live(self, key: tuple) -> _Entry | None:
        # caller holds the lock
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        return entry

    def peek(self, key: tuple) -> Any | None:
        with self._lock:
            entry = self._live(key)
            return entry.value if entry is not None else None

    def is_stale(self, key: tuple) -> bool:
        with self._lock:
            return self._live(key) is None

    def _expired(self, entry: _Entry) -> bool:
        return self.ttl_seconds >= 0 and (self._clock() - entry.fetched_at) > self.ttl_seconds

    def _store(self, key: tuple, entry: _Entry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def fetch(self, key: tuple, fetcher: Callable[[], Any], cancel: CancellationToken | None = None) -> Any:
        cached = self.peek(key)
        if cached is not None:
            return cached

        entity = key[0]
        with self._lock:
            started_gen = self._generation(entity)

        value = fetcher()

        if cancel is not None and cancel.cancelled:
            # Caller is gone; don't let a late answer into the cache.
            cancel.raise_if_cancelled()

        with self._lock:
            if self._generation(entity) == started_gen:
                self._store(key, _Entry(value=value, fetched_at=self._clock(), generation=started_gen))
            else:
                logger.debug("Discarding fetch for %s: invalidated while in flight", key)
        return value

    def invalidate(self, entity: Hashable, *prefix: Any) -> int:
        """Drop every entry under (entity, *prefix). Returns how many were dropped."""
        n = len(prefix) + 1
        with self._lock:
            self._generations[entity] = self._generation(entity) + 1
            doomed = [key for key in self._entries if key[:n] == (entity, *prefix)]
            for key in doomed:
                del self._entries[key]
        logger.debug("Invalidated %s cache entries for %s%s", len(doomed), entity, prefix or "")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
