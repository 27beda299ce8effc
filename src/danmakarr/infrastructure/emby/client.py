"""Emby library client: async httpx implementation of MetadataProviderPort."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import structlog

from danmakarr.domain.entities.episode import (
    EpisodeKind,
    EpisodeMetadata,
    MediaIdentity,
    SeasonCount,
)
from danmakarr.domain.exceptions import FetchFailed, MetadataUnavailable

log = structlog.get_logger(__name__)

_ITEM_ID_RE = re.compile(r"^.*/videos/(\d+)/.*")
# Raised when a JSON payload parses but has the wrong shape.
_MALFORMED = (KeyError, TypeError, ValueError, AttributeError)


class HttpxEmbyClient:
    """Reads item, season and episode data from an Emby server.

    The server coordinates come from the playback URL itself, so one
    client serves any number of libraries.
    """

    def __init__(self, *, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, identity: MediaIdentity, url: str) -> dict[str, Any]:
        """GET with the Emby token header. Raises on status/transport/JSON errors."""
        try:
            resp = await self._http.get(
                url, headers={"X-Emby-Token": identity.api_key}
            )
        except httpx.HTTPError as e:
            log.warning("emby_network_error", url=url, error=str(e))
            raise FetchFailed(f"emby request failed: {e}") from e

        if not resp.is_success:
            log.error("emby_http_error", url=url, status=resp.status_code)
            raise MetadataUnavailable(
                f"emby request failed, status: {resp.status_code}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            log.error("emby_invalid_json", url=url)
            raise MetadataUnavailable("cannot parse emby response") from e

        if not isinstance(data, dict) or not isinstance(data.get("Items"), list):
            raise MetadataUnavailable("emby response has no Items")
        return data

    @staticmethod
    def _to_metadata(item: dict[str, Any]) -> EpisodeMetadata:
        item_type = item.get("Type")

        if item_type == "Episode":
            season = item.get("ParentIndexNumber")
            if not isinstance(season, int):
                return EpisodeMetadata.unavailable()
            series_title = item.get("SeriesName") or "unknown"
            episode = int(item.get("IndexNumber") or 0)
            if season == 0:
                return EpisodeMetadata(
                    kind=EpisodeKind.OVA,
                    series_title=series_title,
                    episode_index=episode,
                    available=True,
                )
            return EpisodeMetadata(
                kind=EpisodeKind.TV_SERIES,
                series_title=series_title,
                season_index=season,
                episode_index=episode,
                series_id=str(item.get("SeriesId") or "0"),
                season_id=str(item.get("SeasonId") or "0"),
                available=True,
            )

        if item_type == "Movie":
            return EpisodeMetadata(
                kind=EpisodeKind.MOVIE,
                title=item.get("Name") or "unknown",
                available=True,
            )

        return EpisodeMetadata.unavailable()

    @staticmethod
    def _count_episodes(items: list[dict[str, Any]]) -> int:
        # Mirrors the library's own numbering: duplicates and gaps do not count.
        total = 0
        for ep in items:
            season = int(ep.get("ParentIndexNumber") or 0)
            number = int(ep.get("IndexNumber") or 0)
            if season != 0 and number > total:
                total += 1
        return total

    # ------------------------------------------------------------------
    # Public API (MetadataProviderPort)
    # ------------------------------------------------------------------

    def extract_identity(self, video_url: str) -> MediaIdentity | None:
        try:
            parts = urlsplit(video_url)
            port = parts.port
        except ValueError:
            return None
        if not parts.scheme or not parts.hostname:
            return None

        api_key = parse_qs(parts.query).get("api_key")
        if not api_key:
            log.debug("emby_api_key_missing", url=video_url)
            return None

        match = _ITEM_ID_RE.match(parts.path)
        if match is None:
            log.debug("emby_item_id_missing", url=video_url)
            return None

        host = f"{parts.scheme}://{parts.hostname}"
        if port is not None:
            host = f"{host}:{port}"
        return MediaIdentity(host=host, item_id=match.group(1), api_key=api_key[0])

    async def get_episode_metadata(self, video_url: str) -> EpisodeMetadata:
        identity = self.extract_identity(video_url)
        if identity is None:
            return EpisodeMetadata.unavailable()

        data = await self._get(
            identity,
            f"{identity.host}/emby/Items?Ids={identity.item_id}&reqformat=json",
        )
        items = data["Items"]
        if not items:
            log.error("emby_item_not_found", item_id=identity.item_id)
            raise MetadataUnavailable(f"item {identity.item_id} not found")

        try:
            metadata = self._to_metadata(items[0])
        except _MALFORMED as e:
            log.error("emby_malformed_item", item_id=identity.item_id, error=str(e))
            raise MetadataUnavailable("cannot parse emby item") from e
        log.info("emby_episode_metadata", item_id=identity.item_id, metadata=str(metadata))
        return metadata

    async def get_season_counts(
        self, identity: MediaIdentity, series_id: str
    ) -> list[SeasonCount]:
        seasons = await self._get(
            identity,
            f"{identity.host}/emby/Shows/{series_id}/Seasons?reqformat=json",
        )

        try:
            counts = await self._collect_season_counts(identity, series_id, seasons["Items"])
        except _MALFORMED as e:
            log.error("emby_malformed_seasons", series_id=series_id, error=str(e))
            raise MetadataUnavailable("cannot parse emby season data") from e

        log.info(
            "emby_season_counts",
            series_id=series_id,
            seasons=[(c.season_index, c.episode_count) for c in counts],
        )
        return counts

    async def _collect_season_counts(
        self, identity: MediaIdentity, series_id: str, seasons: list[dict[str, Any]]
    ) -> list[SeasonCount]:
        counts: list[SeasonCount] = []
        for season in seasons:
            index = int(season.get("IndexNumber") or 0)
            last = counts[-1].season_index if counts else 0
            if index == 0 or index <= last:
                continue

            episodes = await self._get(
                identity,
                f"{identity.host}/emby/Shows/{series_id}/Episodes"
                f"?SeasonId={season.get('Id')}&reqformat=json",
            )
            counts.append(
                SeasonCount(
                    season_index=index,
                    episode_count=self._count_episodes(episodes["Items"]),
                )
            )
        return counts
