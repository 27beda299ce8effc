"""Port for the media-library metadata provider."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from danmakarr.domain.entities.episode import EpisodeMetadata, MediaIdentity, SeasonCount


@runtime_checkable
class MetadataProviderPort(Protocol):
    """Async interface to a library server (Emby-style)."""

    def extract_identity(self, video_url: str) -> MediaIdentity | None:
        """Parse host/item/credential from a playback URL, None if it doesn't fit."""
        ...

    async def get_episode_metadata(self, video_url: str) -> EpisodeMetadata:
        """Describe the played item.

        Returns ``EpisodeMetadata(available=False)`` when the URL carries no
        identity. Raises ``MetadataUnavailable`` / ``FetchFailed`` on errors.
        """
        ...

    async def get_season_counts(
        self, identity: MediaIdentity, series_id: str
    ) -> list[SeasonCount]:
        """Episode count per numbered season, ascending, season 0 excluded."""
        ...
