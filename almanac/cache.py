"""
Almanac Sun-Times Cache

An explicit, caller-owned LRU cache of the day-level part of a report: the
SunTimes a provider returned for one place and UTC calendar date. The key is
(rounded coordinate, UTC date, rounded elevation). Moon phase, solar position
and sky tiers depend on the exact instant and are never cached.

The engine itself never caches; a service only uses a cache that was handed
to it.

Usage:
    cache = AstronomyCache(precision=3, max_entries=512)
    service = AstronomyService(cache=cache)
"""

import threading
from collections import OrderedDict
from datetime import date
from typing import Optional

from almanac.constants import CACHE_COORDINATE_PRECISION, CACHE_MAX_ENTRIES
from almanac.models import GeoCoordinate, SunTimes

__all__ = ["AstronomyCache", "CacheKey"]

CacheKey = tuple[float, float, date, float]


class AstronomyCache:
    """Thread-safe LRU cache of sun times for repeated (coordinate, date) requests."""

    def __init__(
        self,
        precision: int = CACHE_COORDINATE_PRECISION,
        max_entries: int = CACHE_MAX_ENTRIES,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.precision = precision
        self.max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, SunTimes]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def key_for(
        self, coordinate: GeoCoordinate, day: date, elevation_m: float = 0.0
    ) -> CacheKey:
        # +0.0 folds -0.0 into 0.0 so both round to the same key
        return (
            round(coordinate.latitude, self.precision) + 0.0,
            round(coordinate.longitude, self.precision) + 0.0,
            day,
            round(elevation_m, 1) + 0.0,
        )

    def get(
        self, coordinate: GeoCoordinate, day: date, elevation_m: float = 0.0
    ) -> Optional[SunTimes]:
        key = self.key_for(coordinate, day, elevation_m)
        with self._lock:
            sun_times = self._entries.get(key)
            if sun_times is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return sun_times

    def put(
        self,
        coordinate: GeoCoordinate,
        day: date,
        sun_times: SunTimes,
        elevation_m: float = 0.0,
    ) -> None:
        key = self.key_for(coordinate, day, elevation_m)
        with self._lock:
            self._entries[key] = sun_times
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict:
        """Entry count and hit/miss counters."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }
