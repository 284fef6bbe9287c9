from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from trendline.aggregation.models.segment import Segment, segment_ids
from trendline.aggregation.models.trend import TrendResponse

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 256


@dataclass(slots=True)
class CacheEntry:
    timestamp: float
    response: TrendResponse


def segment_key(segments: Optional[Sequence[Segment]]) -> str:
    return ",".join(segment_ids(list(segments or []))) or "default"


class TrendCache:
    """Per-source, per-segment-set snapshot store with a fixed TTL.

    Stale entries stay in place until the key is refetched or the store needs
    room; the store holds at most ``max_entries`` keys, evicting expired ones
    first and then the least recently used.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    @staticmethod
    def key(source: str, seg_key: str) -> str:
        return f"{source}-{seg_key}"

    def get(self, source: str, seg_key: str) -> Optional[CacheEntry]:
        key = self.key(source, seg_key)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.timestamp >= self.ttl_seconds:
            return None
        self._entries.move_to_end(key)
        return entry

    def put(self, source: str, seg_key: str, response: TrendResponse) -> CacheEntry:
        key = self.key(source, seg_key)
        entry = CacheEntry(timestamp=self.clock(), response=response)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        self._evict()
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _evict(self) -> None:
        if len(self._entries) <= self.max_entries:
            return
        now = self.clock()
        expired = [key for key, entry in self._entries.items() if now - entry.timestamp >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted trend cache entry %s", key)
        if expired:
            logger.debug("Swept %d expired trend cache entries", len(expired))
