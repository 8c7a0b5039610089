"""TTL suggestion cache with insertion-order eviction."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable, Iterable, Optional

from convocue import config
from convocue.models import SuggestionCacheEntry


def energy_band(energy: float) -> str:
    return "normal" if energy > config.EXHAUSTED_THRESHOLD else "exhausted"


def make_key(intent: str, recent_intents: Iterable[str], persona_id: str, energy: float) -> str:
    """Composite key: intent, recent intent history, persona and energy band."""
    recent = "_".join(recent_intents)
    return f"{intent}_{recent}_{persona_id}_{energy_band(energy)}"


class SuggestionCache:
    """Bounded suggestion store.

    Entries older than `ttl` read as misses. On overflow the oldest-inserted
    entry goes first (not LRU). Single writer, no locking.
    """

    def __init__(
        self,
        ttl: float = config.CACHE_TTL_SECONDS,
        capacity: int = config.CACHE_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self.ttl = float(ttl)
        self.capacity = int(capacity)
        self._clock = clock
        self._entries: "OrderedDict[str, SuggestionCacheEntry]" = OrderedDict()

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self.ttl:
            return None
        return entry.suggestion_text

    def put(self, key: str, text: str) -> None:
        # Overwrite counts as a fresh insertion
        self._entries.pop(key, None)
        self._entries[key] = SuggestionCacheEntry(suggestion_text=text, inserted_at=self._clock())
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
