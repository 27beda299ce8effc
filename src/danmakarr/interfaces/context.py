"""Session state container, filled by composition.py::build_context()."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from danmakarr.application.use_cases import (
    CommentPipeline,
    DanmakuUseCase,
    EpisodeResolver,
)
from danmakarr.domain.entities.filter import DanmakuFilter
from danmakarr.domain.ports import CachePort, NotifierPort
from danmakarr.infrastructure.config import AppConfig
from danmakarr.infrastructure.persistence.resolution_cache import (
    ResolutionCacheRepository,
)


@dataclass
class DanmakuContext:
    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    comment_store: CachePort
    resolution_cache: ResolutionCacheRepository
    notifier: NotifierPort

    # Runtime filter (the host may swap the source override at any time)
    danmaku_filter: DanmakuFilter

    # Application services
    resolver: EpisodeResolver
    pipeline: CommentPipeline
    danmaku: DanmakuUseCase
