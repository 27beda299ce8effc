"""Danmakarr error taxonomy."""

from __future__ import annotations


class DanmakuError(Exception):
    """Base class for all resolution and retrieval errors."""


class FetchFailed(DanmakuError):
    """Transport error or non-2xx response from an upstream service."""


class InsufficientContent(DanmakuError):
    """Media is shorter than the fingerprint window."""


class MetadataUnavailable(DanmakuError):
    """Library server answered, but not with usable metadata."""


class AmbiguousMatch(DanmakuError):
    """Content hash match returned zero or several episodes."""


class ResolutionError(DanmakuError):
    """Catalog reconciliation could not determine a unique episode."""


class NeedMoreInfo(ResolutionError):
    pass


class TooManyResults(ResolutionError):
    pass


class NoMatch(ResolutionError):
    pass


class SeriesInfoEmpty(ResolutionError):
    """Library returned no numbered seasons for the series."""
