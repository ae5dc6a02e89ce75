from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

from billbook.settings import settings

logger = logging.getLogger(__name__)


class WireCache:
    """Bounded LRU of wire dicts, keyed by (kind, id, timestamp).

    A row's timestamp changes on every write, so stale entries simply stop
    being hit; ``invalidate`` drops them eagerly after a mutation.
    """

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self._entries: OrderedDict[Hashable, dict[str, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_build(self, key: Hashable, builder: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        if self.max_size <= 0:
            return builder()
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return dict(cached)
        value = builder()
        with self._lock:
            self.misses += 1
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
        return dict(value)

    def invalidate(self, kind: str, record_id: int) -> None:
        with self._lock:
            stale = [key for key in self._entries if key[0] == kind and key[1] == record_id]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Wire cache: dropped %d entries for %s/%s", len(stale), kind, record_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


wire_cache = WireCache(settings.wire_cache_size)
