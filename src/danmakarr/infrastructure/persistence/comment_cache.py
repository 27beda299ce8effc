"""Raw comment repository backed by CachePort (diskcache)."""

from __future__ import annotations

import json
import sqlite3

import diskcache
import structlog

from danmakarr.domain.entities.danmaku import RawComment
from danmakarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


def _serialize_comments(comments: list[RawComment]) -> str:
    return json.dumps([{"p": c.p, "m": c.m} for c in comments], ensure_ascii=False)


def _deserialize_comments(data: str) -> list[RawComment]:
    return [RawComment(p=d["p"], m=d["m"]) for d in json.loads(data)]


class CacheCommentRepository:
    """Stores the raw comment set of each episode id, without expiry.

    Store I/O failures never abort playback: a failed read is a miss, a failed
    write is logged.
    """

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    @staticmethod
    def _key(episode_id: int) -> str:
        return f"comments:{episode_id}"

    async def save(self, episode_id: int, comments: list[RawComment]) -> None:
        try:
            await self.cache.set(self._key(episode_id), _serialize_comments(comments))
        except _STORE_ERRORS as e:
            log.error("comments_save_failed", episode_id=episode_id, error=str(e))
            return
        log.debug("comments_saved", episode_id=episode_id, count=len(comments))

    async def get(self, episode_id: int) -> list[RawComment] | None:
        try:
            data = await self.cache.get(self._key(episode_id))
        except _STORE_ERRORS as e:
            log.error("comments_load_failed", episode_id=episode_id, error=str(e))
            return None
        if data is None:
            log.debug("comments_not_found", episode_id=episode_id)
            return None

        try:
            comments = _deserialize_comments(data)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            log.error("comments_deserialize_error", episode_id=episode_id, error=str(e))
            return None
        log.debug("comments_loaded", episode_id=episode_id, count=len(comments))
        return comments
