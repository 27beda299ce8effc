"""dandanplay API client: async httpx implementation of DanmakuProviderPort."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from danmakarr.domain.entities.danmaku import RawComment
from danmakarr.domain.entities.episode import CatalogEntry, EpisodeKind
from danmakarr.domain.exceptions import AmbiguousMatch, FetchFailed, NoMatch

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.dandanplay.net/api/v2"
# Raised when a JSON payload parses but has the wrong shape.
_MALFORMED = (KeyError, TypeError, ValueError, AttributeError)


class HttpxDandanplayClient:
    """Hash matching, catalog search and comment download."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
        match_mode: str = "hashAndFileName",
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._match_mode = match_mode

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.request(method, url, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            log.error(
                "dandanplay_http_error", path=path, status=e.response.status_code
            )
            raise FetchFailed(
                f"dandanplay request failed, status: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            log.warning("dandanplay_network_error", path=path, error=str(e))
            raise FetchFailed(f"dandanplay request failed: {e}") from e
        except ValueError as e:
            log.error("dandanplay_invalid_json", path=path)
            raise FetchFailed("cannot parse dandanplay response") from e

        if not isinstance(data, dict):
            raise FetchFailed("unexpected dandanplay response")
        return data

    async def match_by_hash(self, file_hash: str, file_name: str) -> int:
        data = await self._request(
            "POST",
            "/match",
            json={
                "fileName": file_name,
                "fileHash": file_hash,
                "matchMode": self._match_mode,
            },
        )

        if not data.get("isMatched"):
            log.error("dandanplay_hash_no_match", file_name=file_name)
            raise AmbiguousMatch("no matching episode")

        matches = data.get("matches") or []
        if not isinstance(matches, list):
            log.error("dandanplay_malformed_match", matches=type(matches).__name__)
            raise FetchFailed("cannot parse dandanplay match")
        if len(matches) != 1:
            log.error("dandanplay_hash_too_many", matches=len(matches))
            raise AmbiguousMatch("multiple matching episodes")

        try:
            episode_id = int(matches[0]["episodeId"])
        except _MALFORMED as e:
            log.error("dandanplay_malformed_match", error=str(e))
            raise FetchFailed("cannot parse dandanplay match") from e
        log.info("dandanplay_hash_matched", episode_id=episode_id)
        return episode_id

    async def search_anime(
        self, keyword: str, kind: EpisodeKind
    ) -> list[CatalogEntry]:
        data = await self._request(
            "GET",
            "/search/anime",
            params={"keyword": keyword, "type": kind.value},
        )

        try:
            entries = [
                CatalogEntry(
                    catalog_id=int(anime["animeId"]),
                    episode_count=int(anime.get("episodeCount") or 0),
                    title=str(anime.get("animeTitle", "")),
                )
                for anime in data.get("animes") or []
            ]
        except _MALFORMED as e:
            log.error("dandanplay_malformed_search", keyword=keyword, error=str(e))
            raise FetchFailed("cannot parse dandanplay search results") from e
        if not entries:
            log.error("dandanplay_search_empty", keyword=keyword, kind=kind.value)
            raise NoMatch("no matching episode with info")
        return entries

    async def get_comments(self, episode_id: int) -> list[RawComment]:
        data = await self._request(
            "GET",
            f"/comment/{episode_id}",
            params={"withRelated": "true"},
        )
        try:
            comments = [
                RawComment(p=str(c["p"]), m=str(c["m"]))
                for c in data.get("comments") or []
                if "p" in c and "m" in c
            ]
        except _MALFORMED as e:
            log.error("dandanplay_malformed_comments", episode_id=episode_id, error=str(e))
            raise FetchFailed("cannot parse dandanplay comments") from e
        log.info("dandanplay_comments_fetched", episode_id=episode_id, count=len(comments))
        return comments
