"""Danmaku comments for anime playback, matched via library metadata or content hash."""

__version__ = "0.1.0"
