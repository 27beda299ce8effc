from __future__ import annotations

from .comment_pipeline import CommentPipeline
from .danmaku import DanmakuUseCase
from .resolve_episode import HASH_FALLBACK_MESSAGE, EpisodeResolver

__all__ = [
    "CommentPipeline",
    "DanmakuUseCase",
    "EpisodeResolver",
    "HASH_FALLBACK_MESSAGE",
]
