"""Keyword and source block lists applied to comments."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from .danmaku import DanmakuSource


@dataclass(frozen=True)
class SourceBlockSnapshot:
    """Block decision for one filtering pass."""

    static: frozenset[DanmakuSource]
    override: frozenset[DanmakuSource] | None

    def is_blocked(self, source: DanmakuSource) -> bool:
        # An active override replaces the static set entirely.
        if self.override is not None:
            return source in self.override
        return source in self.static


@dataclass
class DanmakuFilter:
    """Static block lists plus a live, host-controlled source override.

    The override is shared across concurrent pipelines; ``snapshot()``
    holds its lock for the whole filtering pass.
    """

    keywords: list[str] = field(default_factory=list)
    sources: frozenset[DanmakuSource] = frozenset()
    _override: frozenset[DanmakuSource] | None = field(default=None, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self) -> None:
        self.sources = frozenset(
            s for s in self.sources if s is not DanmakuSource.UNKNOWN
        )

    def is_keyword_blocked(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)

    async def set_source_override(
        self, sources: Iterable[DanmakuSource] | None
    ) -> None:
        """Replace the live override; ``None`` falls back to the static set."""
        async with self._lock:
            self._override = None if sources is None else frozenset(sources)

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[SourceBlockSnapshot]:
        async with self._lock:
            yield SourceBlockSnapshot(static=self.sources, override=self._override)
