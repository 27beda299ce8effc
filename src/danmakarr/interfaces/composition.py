from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx
import structlog

from danmakarr.application.use_cases import (
    CommentPipeline,
    DanmakuUseCase,
    EpisodeResolver,
)
from danmakarr.domain.ports import NotifierPort
from danmakarr.infrastructure.cache import DiskcacheAdapter
from danmakarr.infrastructure.config import AppConfig
from danmakarr.infrastructure.config.filters import build_filter
from danmakarr.infrastructure.dandanplay.client import HttpxDandanplayClient
from danmakarr.infrastructure.danmaku.normalizer import normalize_comments
from danmakarr.infrastructure.emby.client import HttpxEmbyClient
from danmakarr.infrastructure.fingerprint import Fingerprinter
from danmakarr.infrastructure.notifications.console import ConsoleNotifier
from danmakarr.infrastructure.persistence.comment_cache import CacheCommentRepository
from danmakarr.infrastructure.persistence.resolution_cache import (
    ResolutionCacheRepository,
)
from danmakarr.interfaces.context import DanmakuContext

log = structlog.get_logger(__name__)


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        proxy=config.http_proxy,
        follow_redirects=True,
    )


@asynccontextmanager
async def build_context(
    config: AppConfig,
    *,
    notifier: NotifierPort | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[DanmakuContext]:
    """Composition root: initialize and clean up all session resources.

    Order matters:
        1. HTTP client (shared by every upstream adapter)
        2. Comment store (diskcache under the data root)
        3. Resolution cache (loaded + swept from disk)
        4. Adapters, filter and use cases
    """
    # ========== 1) HTTP client (shared resource) ==========
    owns_client = http_client is None
    client = http_client if http_client is not None else build_http_client(config)
    log.info("http_client_initialized", proxy=bool(config.http_proxy))

    # ========== 2) Comment store ==========
    comment_store = DiskcacheAdapter(directory=config.comments_dir)
    await comment_store.__aenter__()

    try:
        # ========== 3) Resolution cache ==========
        resolution_cache = await ResolutionCacheRepository(
            config.resolution_cache_path,
            retention=timedelta(days=config.cache_retention_days),
        ).open()
        log.info("resolution_cache_loaded", path=str(config.resolution_cache_path))

        # ========== 4) Adapters + use cases ==========
        notifier = notifier or ConsoleNotifier()
        provider = HttpxDandanplayClient(
            http_client=client,
            base_url=config.dandanplay.base_url,
            match_mode=config.dandanplay.match_mode,
        )
        danmaku_filter = build_filter(config.filter)

        resolver = EpisodeResolver(
            metadata=HttpxEmbyClient(http_client=client),
            provider=provider,
            fingerprinter=Fingerprinter(client),
            cache=resolution_cache,
            notifier=notifier,
            log_search_results=config.log_search_results,
        )
        pipeline = CommentPipeline(
            provider=provider,
            repository=CacheCommentRepository(comment_store),
            danmaku_filter=danmaku_filter,
            normalizer=normalize_comments,
        )

        yield DanmakuContext(
            config=config,
            http_client=client,
            comment_store=comment_store,
            resolution_cache=resolution_cache,
            notifier=notifier,
            danmaku_filter=danmaku_filter,
            resolver=resolver,
            pipeline=pipeline,
            danmaku=DanmakuUseCase(
                resolver=resolver, pipeline=pipeline, notifier=notifier
            ),
        )
    finally:
        await comment_store.aclose()
        if owns_client:
            await client.aclose()
        log.info("context_closed")
