"""diskcache-backed CachePort for raw comment sets."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)

_T = TypeVar("_T")


class DiskcacheAdapter:
    """Async facade over the synchronous, SQLite-based ``diskcache.Cache``.

    Every disk call runs in a worker thread; a semaphore caps how many run
    at once, since they all contend for the same SQLite lock.
    """

    def __init__(self, directory: str | Path, max_concurrent: int = 4) -> None:
        self.directory = Path(directory)
        self._store: DiskCache | None = None
        self._slots = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._store is None:
            self._store = await asyncio.to_thread(DiskCache, str(self.directory))
            log.debug("comment_store_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        store, self._store = self._store, None
        if store is not None:
            await asyncio.to_thread(store.close)
            log.debug("comment_store_closed", directory=str(self.directory))

    async def _run(self, fn: Callable[[DiskCache], _T]) -> _T:
        store = self._store
        if store is None:
            raise RuntimeError("DiskcacheAdapter used outside 'async with'")
        async with self._slots:
            return await asyncio.to_thread(fn, store)

    async def get(self, key: str) -> Any:
        return await self._run(lambda store: store.get(key, default=None))

    async def set(self, key: str, value: Any) -> None:
        # expire=None: comment sets are kept until the store is wiped.
        await self._run(lambda store: store.set(key, value, expire=None))
