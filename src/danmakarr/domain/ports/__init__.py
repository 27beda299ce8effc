from .cache import CachePort
from .comment_repository import CommentRepository
from .danmaku_provider import DanmakuProviderPort
from .fingerprinter import FingerprinterPort
from .metadata_provider import MetadataProviderPort
from .notifier import NotifierPort
from .resolution_cache import ResolutionCachePort

__all__ = [
    "CachePort",
    "CommentRepository",
    "DanmakuProviderPort",
    "FingerprinterPort",
    "MetadataProviderPort",
    "NotifierPort",
    "ResolutionCachePort",
]
