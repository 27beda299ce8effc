"""Episode resolution: playback path -> provider episode id."""

from __future__ import annotations

import structlog

from danmakarr.application.reconciliation import resolve_kind, resolve_series
from danmakarr.domain.entities.episode import (
    EpisodeKind,
    EpisodeMetadata,
    MediaIdentity,
    PlaybackSource,
    encode_episode_id,
    local_file_name,
)
from danmakarr.domain.exceptions import DanmakuError, FetchFailed, MetadataUnavailable
from danmakarr.domain.ports import (
    DanmakuProviderPort,
    FingerprinterPort,
    MetadataProviderPort,
    NotifierPort,
    ResolutionCachePort,
)

log = structlog.get_logger(__name__)

HASH_FALLBACK_MESSAGE = "trying matching with video hash"


class EpisodeResolver:
    """Chooses between metadata-based resolution and content-hash matching.

    Flow for a remote URL:
        1. Ask the library for metadata (errors count as "unavailable")
        2. Available: item cache, then season cache / search + reconciliation
        3. Any resolution error: notify and hash-match once
        4. Remember the resolved id per (host, item)

    Local paths always go through the hash match.
    """

    def __init__(
        self,
        *,
        metadata: MetadataProviderPort,
        provider: DanmakuProviderPort,
        fingerprinter: FingerprinterPort,
        cache: ResolutionCachePort,
        notifier: NotifierPort,
        log_search_results: bool = False,
    ) -> None:
        self.metadata = metadata
        self.provider = provider
        self.fingerprinter = fingerprinter
        self.cache = cache
        self.notifier = notifier
        self.log_search_results = log_search_results

    async def resolve(self, path: str) -> int:
        source = PlaybackSource.from_path(path)
        if not source.is_remote:
            log.info("resolving_local_file", path=path)
            return await self._resolve_by_hash(source, local_file_name(path))

        log.info("resolving_stream", url=path)
        identity = self.metadata.extract_identity(path)
        metadata = await self._lookup_metadata(path)
        log.info("episode_metadata", metadata=str(metadata))

        if identity is None or not metadata.available:
            self.notifier.notify(HASH_FALLBACK_MESSAGE)
            return await self._resolve_by_hash(source, metadata.file_name)

        cached = await self.cache.get_item(identity.host, identity.item_id)
        if cached is not None:
            log.info("episode_id_cache_hit", item_id=identity.item_id, episode_id=cached)
            return cached

        try:
            episode_id = await self._resolve_by_metadata(identity, metadata)
        except DanmakuError as e:
            log.warning("metadata_resolution_failed", error=str(e), error_type=type(e).__name__)
            self.notifier.notify(HASH_FALLBACK_MESSAGE)
            episode_id = await self._resolve_by_hash(source, metadata.file_name)

        await self.cache.remember_item(identity.host, identity.item_id, episode_id)
        return episode_id

    async def _lookup_metadata(self, url: str) -> EpisodeMetadata:
        try:
            return await self.metadata.get_episode_metadata(url)
        except (MetadataUnavailable, FetchFailed) as e:
            log.warning("metadata_lookup_failed", error=str(e))
            return EpisodeMetadata.unavailable()

    async def _resolve_by_hash(self, source: PlaybackSource, file_name: str) -> int:
        file_hash = await self.fingerprinter.fingerprint(source)
        return await self.provider.match_by_hash(file_hash, file_name)

    async def _resolve_by_metadata(
        self, identity: MediaIdentity, metadata: EpisodeMetadata
    ) -> int:
        is_series = metadata.kind is EpisodeKind.TV_SERIES
        season_known = is_series and metadata.season_id != "0"

        if season_known:
            catalog_id = await self.cache.get_season(identity.host, metadata.season_id)
            if catalog_id is not None:
                log.info(
                    "season_cache_hit",
                    season_id=metadata.season_id,
                    catalog_id=catalog_id,
                )
                return encode_episode_id(catalog_id, metadata.episode_index)

        entries = await self.provider.search_anime(metadata.search_keyword, metadata.kind)
        if self.log_search_results:
            log.info(
                "catalog_search_results",
                keyword=metadata.search_keyword,
                results=[(e.title, e.episode_count) for e in entries],
            )

        resolution = resolve_kind(metadata.kind, entries, metadata.episode_index)
        if resolution is None:
            seasons = await self.metadata.get_season_counts(identity, metadata.series_id)
            resolution = resolve_series(
                entries, seasons, metadata.season_index, metadata.episode_index
            )
            if resolution.season_aligned and season_known:
                await self.cache.remember_season(
                    identity.host, metadata.season_id, resolution.catalog_id
                )

        log.info(
            "episode_resolved",
            rule=resolution.rule,
            catalog_id=resolution.catalog_id,
            local_episode=resolution.local_episode,
        )
        return resolution.episode_id
