"""End-to-end use case: playback path -> ordered, filtered danmaku events."""

from __future__ import annotations

import structlog

from danmakarr.domain.entities.danmaku import DanmakuEvent
from danmakarr.domain.exceptions import DanmakuError
from danmakarr.domain.ports import NotifierPort

from .comment_pipeline import CommentPipeline
from .resolve_episode import EpisodeResolver

log = structlog.get_logger(__name__)


class DanmakuUseCase:
    def __init__(
        self,
        *,
        resolver: EpisodeResolver,
        pipeline: CommentPipeline,
        notifier: NotifierPort,
    ) -> None:
        self.resolver = resolver
        self.pipeline = pipeline
        self.notifier = notifier

    async def execute(self, path: str) -> list[DanmakuEvent]:
        """Resolve the episode and return its comments.

        Raises:
            DanmakuError: resolution or retrieval failed for good; the host
                has already been notified with the error text.
        """
        structlog.contextvars.bind_contextvars(media=path)
        try:
            episode_id = await self.resolver.resolve(path)
            log.info("episode_id_resolved", episode_id=episode_id)
            return await self.pipeline.execute(episode_id)
        except DanmakuError as e:
            log.error("danmaku_failed", error=str(e), error_type=type(e).__name__)
            self.notifier.notify(str(e))
            raise
        finally:
            structlog.contextvars.unbind_contextvars("media")
