#!/usr/bin/env python3
"""
Bounded memo of synthesized gradients, keyed by palette colors and settings.

Least recently accessed entries are evicted once the cache grows past its
capacity. Eviction only happens when a new entry is inserted.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from extract_colors import ColorPalette
from synthesize_gradients import Gradient, GradientCustomizationSettings, synthesize


logger = logging.getLogger(__name__)


MAX_CACHE_SIZE = 20
STATS_LOG_INTERVAL = 10  # Requests between hit-rate log lines


@dataclass
class CacheEntry:
    gradients: list
    last_access: float


def cache_key(palette, settings: Optional[GradientCustomizationSettings] = None) -> str:
    """Colors in order, then the serialized settings: 'c0:c1:...|hardness:positions'."""
    colors = palette.colors if isinstance(palette, ColorPalette) else palette
    settings_key = settings.to_key() if settings is not None else 'default'
    return f"{':'.join(colors)}|{settings_key}"


class GradientCache:
    """
    Memoizes synthesize() output.

    Hits return the stored list object itself, so callers can compare by
    identity to skip redundant work.
    """

    def __init__(self, capacity: int = MAX_CACHE_SIZE,
                 compute: Callable = synthesize,
                 clock: Callable[[], float] = time.monotonic):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._compute = compute
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def get_or_compute(self, palette,
                       settings: Optional[GradientCustomizationSettings] = None) -> list[Gradient]:
        key = cache_key(palette, settings)
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is not None:
                entry.last_access = self._clock()
                # Reinsert so dict order tracks recency for equal timestamps
                self._entries[key] = entry
                self.hits += 1
                self._log_stats()
                return entry.gradients

            gradients = self._compute(palette, settings)
            self._entries[key] = CacheEntry(gradients=gradients, last_access=self._clock())
            self.misses += 1
            self._evict()
            self._log_stats()
            return gradients

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        return {
            'entries': len(self._entries),
            'capacity': self.capacity,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hit_rate,
        }

    def _evict(self) -> None:
        excess = len(self._entries) - self.capacity
        if excess <= 0:
            return
        # sorted() is stable, so ties fall back to dict (recency) order
        oldest = sorted(self._entries, key=lambda k: self._entries[k].last_access)
        for key in oldest[:excess]:
            del self._entries[key]
        logger.debug("Evicted %d gradient cache entries", excess)

    def _log_stats(self) -> None:
        total = self.hits + self.misses
        if total % STATS_LOG_INTERVAL == 0:
            logger.debug(
                "Gradient cache performance: %.1f%% hit rate (%d hits, %d misses)",
                self.hit_rate * 100, self.hits, self.misses,
            )
