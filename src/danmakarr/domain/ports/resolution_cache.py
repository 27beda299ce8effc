"""Port for the memoized episode resolutions."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResolutionCachePort(Protocol):
    """Async (host, item) -> episode id and (host, season) -> catalog id cache."""

    async def get_item(self, host: str, item_id: str) -> int | None: ...

    async def remember_item(self, host: str, item_id: str, episode_id: int) -> None: ...

    async def get_season(self, host: str, season_id: str) -> int | None: ...

    async def remember_season(
        self, host: str, season_id: str, catalog_id: int
    ) -> None: ...
