"""Tests for CacheCommentRepository."""

from __future__ import annotations

import json
import sqlite3
from unittest.mock import AsyncMock

import diskcache
import pytest

from danmakarr.domain.entities import RawComment
from danmakarr.infrastructure.persistence.comment_cache import (
    CacheCommentRepository,
    _serialize_comments,
)


class TestCacheCommentRepository:
    async def test_save_stores_json(
        self, mock_cache: AsyncMock, raw_comments: list[RawComment]
    ) -> None:
        repo = CacheCommentRepository(cache=mock_cache)
        await repo.save(1010005, raw_comments)

        mock_cache.set.assert_awaited_once()
        key, value = mock_cache.set.call_args[0]
        assert key == "comments:1010005"
        assert mock_cache.set.call_args[1] == {}
        assert json.loads(value)[0] == {"p": raw_comments[0].p, "m": raw_comments[0].m}

    async def test_get_returns_comments(
        self, mock_cache: AsyncMock, raw_comments: list[RawComment]
    ) -> None:
        mock_cache.get = AsyncMock(return_value=_serialize_comments(raw_comments))
        repo = CacheCommentRepository(cache=mock_cache)

        assert await repo.get(1010005) == raw_comments
        mock_cache.get.assert_awaited_once_with("comments:1010005")

    async def test_get_returns_none_for_missing_key(self, mock_cache: AsyncMock) -> None:
        assert await CacheCommentRepository(cache=mock_cache).get(1) is None

    async def test_get_handles_corrupt_data(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value="not-valid-json{{{")
        assert await CacheCommentRepository(cache=mock_cache).get(1) is None

    @pytest.mark.parametrize(
        "error",
        [OSError("disk gone"), sqlite3.OperationalError("database is locked"), diskcache.Timeout()],
    )
    async def test_store_errors_degrade(
        self, mock_cache: AsyncMock, raw_comments: list[RawComment], error: Exception
    ) -> None:
        mock_cache.get = AsyncMock(side_effect=error)
        mock_cache.set = AsyncMock(side_effect=error)
        repo = CacheCommentRepository(cache=mock_cache)

        assert await repo.get(1) is None
        await repo.save(1, raw_comments)  # logged, not raised

    async def test_unexpected_errors_propagate(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(side_effect=RuntimeError("store not opened"))
        with pytest.raises(RuntimeError):
            await CacheCommentRepository(cache=mock_cache).get(1)
