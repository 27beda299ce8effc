"""Tests for the bounded, persisted resolution cache."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from danmakarr.infrastructure.persistence.resolution_cache import (
    BoundedInsertionMap,
    ResolutionCache,
    ResolutionCacheRepository,
)

_HOST = "https://emby.example.com"
_NOW = datetime(2025, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


class TestBoundedInsertionMap:
    def test_31_inserts_keep_newest_30(self) -> None:
        m: BoundedInsertionMap[str, int] = BoundedInsertionMap(30)
        for n in range(31):
            m.insert(f"item-{n}", n)

        assert len(m) == 30
        assert m.get("item-0") is None
        assert all(m.get(f"item-{n}") == n for n in range(1, 31))

    def test_reinsert_updates_without_reordering(self) -> None:
        m: BoundedInsertionMap[str, int] = BoundedInsertionMap(2)
        m.insert("a", 1)
        m.insert("b", 2)
        m.insert("a", 10)  # value updated, still oldest
        m.insert("c", 3)

        assert m.get("a") is None
        assert m.get("b") == 2
        assert m.get("c") == 3

    def test_reads_do_not_affect_eviction(self) -> None:
        m: BoundedInsertionMap[str, int] = BoundedInsertionMap(2)
        m.insert("a", 1)
        m.insert("b", 2)
        assert m.get("a") == 1
        m.insert("c", 3)
        assert "a" not in m

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            BoundedInsertionMap(0)


class TestResolutionCache:
    def test_items_and_seasons_are_independent(self) -> None:
        cache = ResolutionCache()
        cache.insert_item(_HOST, "42", 1010005)
        cache.insert_season(_HOST, "42", 101)

        assert cache.get_item(_HOST, "42") == 1010005
        assert cache.get_season(_HOST, "42") == 101
        assert cache.get_item("https://other", "42") is None

    def test_capacity_is_per_host(self) -> None:
        cache = ResolutionCache()
        for n in range(31):
            cache.insert_item(_HOST, str(n), n)
        cache.insert_item("https://other", "0", 7)

        assert cache.get_item(_HOST, "0") is None
        assert cache.get_item(_HOST, "30") == 30
        assert cache.get_item("https://other", "0") == 7

    def test_sweep_drops_old_items_and_empty_hosts(self) -> None:
        cache = ResolutionCache()
        cache.insert_item(_HOST, "old", 1, now=_NOW - timedelta(days=40))
        cache.insert_item(_HOST, "fresh", 2, now=_NOW - timedelta(days=1))
        cache.insert_item("https://stale", "x", 3, now=_NOW - timedelta(days=31))
        cache.insert_season(_HOST, "s", 101)

        removed = cache.sweep(timedelta(days=30), now=_NOW)

        assert removed == 2
        assert cache.get_item(_HOST, "old") is None
        assert cache.get_item(_HOST, "fresh") == 2
        assert "https://stale" not in cache.items
        # seasons are not swept
        assert cache.get_season(_HOST, "s") == 101

    def test_dict_round_trip_keeps_insertion_order(self) -> None:
        cache = ResolutionCache(capacity=3)
        for n in range(3):
            cache.insert_item(_HOST, str(n), n, now=_NOW)

        restored = ResolutionCache.from_dict(cache.to_dict(), capacity=3)
        restored.insert_item(_HOST, "new", 99, now=_NOW)

        assert restored.get_item(_HOST, "0") is None
        assert restored.get_item(_HOST, "1") == 1


class TestResolutionCacheRepository:
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        repo = await ResolutionCacheRepository(tmp_path / "database.json").open()
        assert await repo.get_item(_HOST, "42") is None
        assert not (tmp_path / "database.json").exists()

    async def test_persists_after_each_mutation(self, tmp_path: Path) -> None:
        path = tmp_path / "data" / "database.json"
        repo = await ResolutionCacheRepository(path).open()
        await repo.remember_item(_HOST, "42", 1010005)
        await repo.remember_season(_HOST, "902", 101)

        reopened = await ResolutionCacheRepository(path).open()
        assert await reopened.get_item(_HOST, "42") == 1010005
        assert await reopened.get_season(_HOST, "902") == 101

    async def test_open_sweeps_expired_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "database.json"
        cache = ResolutionCache()
        cache.insert_item(_HOST, "old", 1, now=datetime.now(timezone.utc) - timedelta(days=60))
        cache.insert_item(_HOST, "new", 2)
        path.write_text(json.dumps(cache.to_dict()), encoding="utf-8")

        repo = await ResolutionCacheRepository(path, retention=timedelta(days=30)).open()

        assert await repo.get_item(_HOST, "old") is None
        assert await repo.get_item(_HOST, "new") == 2
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert [e["item_id"] for e in on_disk["items"][_HOST]] == ["new"]

    async def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "database.json"
        path.write_text("{not json", encoding="utf-8")

        repo = await ResolutionCacheRepository(path).open()
        assert await repo.get_item(_HOST, "42") is None

        await repo.remember_item(_HOST, "42", 5)
        assert json.loads(path.read_text(encoding="utf-8"))["items"][_HOST][0]["episode_id"] == 5

    async def test_save_failure_keeps_memory_state(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        repo = await ResolutionCacheRepository(blocker / "database.json").open()

        await repo.remember_item(_HOST, "42", 5)

        assert await repo.get_item(_HOST, "42") == 5
