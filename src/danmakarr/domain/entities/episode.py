"""Domain entities for episode identification.

Pure value objects; no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from urllib.parse import urlparse


class EpisodeKind(str, Enum):
    """Kind of library item, as used for the catalog search ``type``."""

    TV_SERIES = "tvseries"
    OVA = "ova"
    MOVIE = "movie"
    UNKNOWN = "unknown"


def is_http_link(url: str) -> bool:
    try:
        scheme = urlparse(url).scheme
    except ValueError:
        return False
    return scheme in ("http", "https")


def local_file_name(path: str) -> str:
    """Basename of a local path, ``"unknown.mp4"`` when there is none."""
    return PurePath(path).name or "unknown.mp4"


@dataclass(frozen=True)
class PlaybackSource:
    """A local path or a remote URL handed over by the player."""

    path: str
    is_remote: bool = False

    @classmethod
    def from_path(cls, path: str) -> PlaybackSource:
        return cls(path=path, is_remote=is_http_link(path))


@dataclass(frozen=True)
class MediaIdentity:
    """Library server coordinates extracted from a playback URL."""

    host: str  # "https://emby.example.com:8096"
    item_id: str
    api_key: str


@dataclass(frozen=True)
class EpisodeMetadata:
    """Structured metadata for the item being played.

    ``available=False`` means the library could not describe the item and
    the caller must fall back to content fingerprinting.
    """

    kind: EpisodeKind = EpisodeKind.UNKNOWN
    title: str = "unknown"
    series_title: str = "unknown"
    season_index: int = -1  # -1 = unknown, 0 = specials
    episode_index: int = 0
    series_id: str = "0"
    season_id: str = "0"
    available: bool = False

    @classmethod
    def unavailable(cls) -> EpisodeMetadata:
        return cls()

    @property
    def search_keyword(self) -> str:
        """Keyword used for the catalog search."""
        if self.kind is EpisodeKind.MOVIE:
            return self.title
        return self.series_title

    @property
    def file_name(self) -> str:
        """Pseudo file name sent along with a content hash match."""
        if self.kind is EpisodeKind.TV_SERIES:
            return (
                f"{self.series_title} "
                f"S{self.season_index:02d}E{self.episode_index:02d}"
            )
        if self.kind is EpisodeKind.OVA:
            return f"{self.series_title} S00E{self.episode_index:02d}"
        return self.title

    def __str__(self) -> str:
        return (
            f"[Type: {self.kind.value}  Name: {self.search_keyword}  "
            f"Season Number: {self.season_index}  "
            f"Episode Number: {self.episode_index}  "
            f"SeriesId: {self.series_id}  Status: {self.available}]"
        )


@dataclass(frozen=True)
class SeasonCount:
    """Number of episodes in one library season (season 0 excluded)."""

    season_index: int
    episode_count: int


@dataclass(frozen=True)
class CatalogEntry:
    """One anime record from the catalog search, in provider order."""

    catalog_id: int
    episode_count: int
    title: str = ""


# Width of the zero-padded local episode number inside a resolved id.
EPISODE_ID_PAD = 4


def encode_episode_id(catalog_id: int, local_episode: int) -> int:
    """Concatenate catalog id and 4-digit local episode number.

    ``encode_episode_id(101, 5) == 1010005``. Local numbers >= 10000 do not
    fit the padding and produce a longer, different id.
    """
    return int(f"{catalog_id}{local_episode:0{EPISODE_ID_PAD}d}")
