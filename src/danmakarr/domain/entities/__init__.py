from .danmaku import (
    DanmakuEvent,
    DanmakuSource,
    Placement,
    PlacementStatus,
    RawComment,
)
from .episode import (
    CatalogEntry,
    EpisodeKind,
    EpisodeMetadata,
    MediaIdentity,
    PlaybackSource,
    SeasonCount,
    encode_episode_id,
    is_http_link,
    local_file_name,
)
from .filter import DanmakuFilter, SourceBlockSnapshot

__all__ = [
    "CatalogEntry",
    "DanmakuEvent",
    "DanmakuFilter",
    "DanmakuSource",
    "EpisodeKind",
    "EpisodeMetadata",
    "MediaIdentity",
    "Placement",
    "PlacementStatus",
    "PlaybackSource",
    "RawComment",
    "SeasonCount",
    "SourceBlockSnapshot",
    "encode_episode_id",
    "is_http_link",
    "local_file_name",
]
