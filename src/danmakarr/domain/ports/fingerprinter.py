"""Port for content fingerprinting."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from danmakarr.domain.entities.episode import PlaybackSource


@runtime_checkable
class FingerprinterPort(Protocol):
    async def fingerprint(self, source: PlaybackSource) -> str:
        """Hex digest over the fixed prefix window of the media."""
        ...
