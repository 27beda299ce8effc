"""Port for persisted raw comment sets."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from danmakarr.domain.entities.danmaku import RawComment


@runtime_checkable
class CommentRepository(Protocol):
    """Async interface for storing raw comments per resolved episode id."""

    async def save(self, episode_id: int, comments: list[RawComment]) -> None: ...

    async def get(self, episode_id: int) -> list[RawComment] | None: ...
