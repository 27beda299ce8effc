"""Comment retrieval + normalization for a resolved episode id."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from danmakarr.domain.entities.danmaku import DanmakuEvent, RawComment
from danmakarr.domain.entities.filter import DanmakuFilter, SourceBlockSnapshot
from danmakarr.domain.ports import CommentRepository, DanmakuProviderPort

log = structlog.get_logger(__name__)

Normalizer = Callable[
    [Iterable[RawComment], DanmakuFilter, SourceBlockSnapshot], list[DanmakuEvent]
]


class CommentPipeline:
    """Load-or-fetch raw comments, then normalize them under the filter lock."""

    def __init__(
        self,
        *,
        provider: DanmakuProviderPort,
        repository: CommentRepository,
        danmaku_filter: DanmakuFilter,
        normalizer: Normalizer,
    ) -> None:
        self.provider = provider
        self.repository = repository
        self.filter = danmaku_filter
        self.normalizer = normalizer

    async def load_raw(self, episode_id: int) -> list[RawComment]:
        stored = await self.repository.get(episode_id)
        if stored is not None:
            log.info("comments_from_store", episode_id=episode_id, count=len(stored))
            return stored

        comments = await self.provider.get_comments(episode_id)
        await self.repository.save(episode_id, comments)
        return comments

    async def execute(self, episode_id: int) -> list[DanmakuEvent]:
        raw = await self.load_raw(episode_id)
        async with self.filter.snapshot() as blocks:
            events = self.normalizer(raw, self.filter, blocks)
        log.info(
            "comments_normalized",
            episode_id=episode_id,
            raw=len(raw),
            events=len(events),
        )
        return events
