"""Shared test fixtures for Danmakarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from danmakarr.domain.entities import (
    DanmakuFilter,
    EpisodeKind,
    EpisodeMetadata,
    MediaIdentity,
    RawComment,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def emby_url() -> str:
    return (
        "https://emby.example.com:8920/emby/videos/4242/original.mkv"
        "?MediaSourceId=abc&api_key=secret-token"
    )


@pytest.fixture()
def identity() -> MediaIdentity:
    return MediaIdentity(
        host="https://emby.example.com:8920", item_id="4242", api_key="secret-token"
    )


@pytest.fixture()
def tv_metadata() -> EpisodeMetadata:
    return EpisodeMetadata(
        kind=EpisodeKind.TV_SERIES,
        series_title="Frieren",
        season_index=2,
        episode_index=5,
        series_id="900",
        season_id="902",
        available=True,
    )


@pytest.fixture()
def raw_comments() -> list[RawComment]:
    return [
        RawComment(p="12.5,1,16711680,[bilibili]user1", m="hello"),
        RawComment(p="3.0,1,255,1234567", m="first"),
        RawComment(p="7.25,4,65280,[Gamer]abc", m="line one\nline two"),
    ]


@pytest.fixture()
def danmaku_filter() -> DanmakuFilter:
    return DanmakuFilter()


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_metadata(identity: MediaIdentity) -> MagicMock:
    """Mock MetadataProviderPort (extract_identity is synchronous)."""
    provider = MagicMock()
    provider.extract_identity.return_value = identity
    provider.get_episode_metadata = AsyncMock(
        return_value=EpisodeMetadata.unavailable()
    )
    provider.get_season_counts = AsyncMock(return_value=[])
    return provider


@pytest.fixture()
def mock_provider() -> AsyncMock:
    """Mock DanmakuProviderPort."""
    provider = AsyncMock()
    provider.match_by_hash = AsyncMock(return_value=77770001)
    provider.search_anime = AsyncMock(return_value=[])
    provider.get_comments = AsyncMock(return_value=[])
    return provider


@pytest.fixture()
def mock_fingerprinter() -> AsyncMock:
    fp = AsyncMock()
    fp.fingerprint = AsyncMock(return_value="d41d8cd98f00b204e9800998ecf8427e")
    return fp


@pytest.fixture()
def mock_resolution_cache() -> AsyncMock:
    """Mock ResolutionCachePort (always a miss)."""
    cache = AsyncMock()
    cache.get_item = AsyncMock(return_value=None)
    cache.remember_item = AsyncMock()
    cache.get_season = AsyncMock(return_value=None)
    cache.remember_season = AsyncMock()
    return cache


@pytest.fixture()
def mock_notifier() -> MagicMock:
    return MagicMock()
