"""Memoized episode resolutions, persisted as one JSON file."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generic, TypeVar

import structlog

log = structlog.get_logger(__name__)

# Per-host capacity for both the item and season maps.
HOST_CAPACITY = 30

K = TypeVar("K")
V = TypeVar("V")


class BoundedInsertionMap(Generic[K, V]):
    """Mapping that evicts the oldest *inserted* key once full.

    Re-inserting an existing key replaces its value in place; neither that
    nor a read changes the eviction order.
    """

    def __init__(self, capacity: int = HOST_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._order: deque[K] = deque()
        self._values: dict[K, V] = {}

    def insert(self, key: K, value: V) -> None:
        if key in self._values:
            self._values[key] = value
            return
        if len(self._order) >= self.capacity:
            oldest = self._order.popleft()
            del self._values[oldest]
        self._order.append(key)
        self._values[key] = value

    def get(self, key: K) -> V | None:
        return self._values.get(key)

    def remove(self, key: K) -> None:
        if key in self._values:
            del self._values[key]
            self._order.remove(key)

    def items(self) -> Iterator[tuple[K, V]]:
        """Entries, oldest insertion first."""
        for key in self._order:
            yield key, self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._order)


@dataclass(frozen=True)
class CachedEpisode:
    episode_id: int
    last_updated: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResolutionCache:
    """(host, item) -> episode id and (host, season) -> catalog id."""

    capacity: int = HOST_CAPACITY
    items: dict[str, BoundedInsertionMap[str, CachedEpisode]] = field(
        default_factory=dict
    )
    seasons: dict[str, BoundedInsertionMap[str, int]] = field(default_factory=dict)

    def insert_item(
        self, host: str, item_id: str, episode_id: int, *, now: datetime | None = None
    ) -> None:
        bucket = self.items.setdefault(host, BoundedInsertionMap(self.capacity))
        bucket.insert(item_id, CachedEpisode(episode_id, now or _now()))

    def get_item(self, host: str, item_id: str) -> int | None:
        bucket = self.items.get(host)
        if bucket is None:
            return None
        entry = bucket.get(item_id)
        return entry.episode_id if entry is not None else None

    def insert_season(self, host: str, season_id: str, catalog_id: int) -> None:
        bucket = self.seasons.setdefault(host, BoundedInsertionMap(self.capacity))
        bucket.insert(season_id, catalog_id)

    def get_season(self, host: str, season_id: str) -> int | None:
        bucket = self.seasons.get(host)
        return bucket.get(season_id) if bucket is not None else None

    def sweep(self, retention: timedelta, *, now: datetime | None = None) -> int:
        """Drop item entries older than ``retention``; returns how many went.

        Hosts left without items are dropped too. Seasons are not swept.
        """
        cutoff = (now or _now()) - retention
        removed = 0
        for host in list(self.items):
            bucket = self.items[host]
            expired = [k for k, v in bucket.items() if v.last_updated < cutoff]
            for key in expired:
                bucket.remove(key)
            removed += len(expired)
            if not bucket:
                del self.items[host]
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": {
                host: [
                    {
                        "item_id": key,
                        "episode_id": entry.episode_id,
                        "last_updated": entry.last_updated.isoformat(),
                    }
                    for key, entry in bucket.items()
                ]
                for host, bucket in self.items.items()
            },
            "seasons": {
                host: [
                    {"season_id": key, "catalog_id": catalog_id}
                    for key, catalog_id in bucket.items()
                ]
                for host, bucket in self.seasons.items()
            },
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], capacity: int = HOST_CAPACITY
    ) -> ResolutionCache:
        cache = cls(capacity=capacity)
        for host, entries in data.get("items", {}).items():
            for e in entries:
                cache.insert_item(
                    host,
                    e["item_id"],
                    int(e["episode_id"]),
                    now=datetime.fromisoformat(e["last_updated"]),
                )
        for host, entries in data.get("seasons", {}).items():
            for e in entries:
                cache.insert_season(host, e["season_id"], int(e["catalog_id"]))
        return cache


def _write_atomic(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _read_file(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


class ResolutionCacheRepository:
    """File-backed ResolutionCache implementing ``ResolutionCachePort``.

    Loaded (and swept) once by ``open()``, saved after every mutation.
    I/O failures are logged; the in-memory state keeps working.
    """

    def __init__(
        self,
        path: Path,
        *,
        retention: timedelta = timedelta(days=30),
        capacity: int = HOST_CAPACITY,
    ) -> None:
        self.path = path
        self.retention = retention
        self._capacity = capacity
        self._state = ResolutionCache(capacity=capacity)
        self._lock = asyncio.Lock()

    async def open(self) -> ResolutionCacheRepository:
        async with self._lock:
            self._state = await self._load()
            removed = self._state.sweep(self.retention)
            if removed:
                log.info("resolution_cache_swept", removed=removed)
                await self._save()
        return self

    async def _load(self) -> ResolutionCache:
        try:
            raw = await asyncio.to_thread(_read_file, self.path)
        except OSError as e:
            log.error("resolution_cache_load_failed", path=str(self.path), error=str(e))
            return ResolutionCache(capacity=self._capacity)

        if raw is None:
            log.debug("resolution_cache_missing", path=str(self.path))
            return ResolutionCache(capacity=self._capacity)

        try:
            return ResolutionCache.from_dict(json.loads(raw), capacity=self._capacity)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("resolution_cache_corrupt", path=str(self.path), error=str(e))
            return ResolutionCache(capacity=self._capacity)

    async def _save(self) -> None:
        payload = json.dumps(self._state.to_dict())
        try:
            await asyncio.to_thread(_write_atomic, self.path, payload)
        except OSError as e:
            log.error("resolution_cache_save_failed", path=str(self.path), error=str(e))

    async def get_item(self, host: str, item_id: str) -> int | None:
        async with self._lock:
            return self._state.get_item(host, item_id)

    async def remember_item(self, host: str, item_id: str, episode_id: int) -> None:
        async with self._lock:
            self._state.insert_item(host, item_id, episode_id)
            await self._save()
        log.debug("resolution_cached", host=host, item_id=item_id, episode_id=episode_id)

    async def get_season(self, host: str, season_id: str) -> int | None:
        async with self._lock:
            return self._state.get_season(host, season_id)

    async def remember_season(self, host: str, season_id: str, catalog_id: int) -> None:
        async with self._lock:
            self._state.insert_season(host, season_id, catalog_id)
            await self._save()
