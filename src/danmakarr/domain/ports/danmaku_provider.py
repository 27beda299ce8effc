"""Port for the danmaku/catalog provider."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from danmakarr.domain.entities.danmaku import RawComment
from danmakarr.domain.entities.episode import CatalogEntry, EpisodeKind


@runtime_checkable
class DanmakuProviderPort(Protocol):
    """Async interface to a dandanplay-compatible API."""

    async def match_by_hash(self, file_hash: str, file_name: str) -> int:
        """Return the single episode id matching a content hash.

        Raises ``AmbiguousMatch`` for zero or several matches.
        """
        ...

    async def search_anime(
        self, keyword: str, kind: EpisodeKind
    ) -> list[CatalogEntry]:
        """Catalog entries in provider order."""
        ...

    async def get_comments(self, episode_id: int) -> list[RawComment]:
        ...
