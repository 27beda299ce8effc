"""Turn raw provider comments into filtered, sorted DanmakuEvents."""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Iterable

import regex
import structlog

from danmakarr.domain.entities.danmaku import DanmakuEvent, DanmakuSource, RawComment
from danmakarr.domain.entities.filter import DanmakuFilter, SourceBlockSnapshot

log = structlog.get_logger(__name__)

_GRAPHEME = regex.compile(r"\X")


@dataclass(frozen=True)
class ParsedAttributes:
    time: float
    color: int
    user_tag: str


def parse_comment(p: str) -> ParsedAttributes:
    """Split ``"time,mode,color,userTag"``; the tag may itself contain commas.

    Raises ValueError when a field is missing or not numeric.
    """
    parts = p.split(",", 3)
    if len(parts) != 4:
        raise ValueError(f"expected 4 fields, got {len(parts)}")
    time_s, _mode, color_s, user_tag = parts
    color = int(color_s)
    if not 0 <= color <= 0xFFFFFF:
        raise ValueError(f"color out of range: {color}")
    return ParsedAttributes(time=float(time_s), color=color, user_tag=user_tag)


def classify_source(user_tag: str) -> DanmakuSource:
    """``"123"``/``""`` -> dandan, ``"[Gamer]x"`` -> gamer, else unknown."""
    if all(ch.isnumeric() for ch in user_tag):
        return DanmakuSource.DANDAN
    if user_tag.startswith("["):
        name, sep, _ = user_tag[1:].partition("]")
        if sep:
            return DanmakuSource.from_name(name)
    return DanmakuSource.UNKNOWN


def unpack_color(value: int) -> tuple[int, int, int]:
    return value // 65536, (value // 256) % 256, value % 256


def grapheme_count(text: str) -> int:
    return len(_GRAPHEME.findall(text))


def normalize_comments(
    comments: Iterable[RawComment],
    danmaku_filter: DanmakuFilter,
    blocks: SourceBlockSnapshot,
) -> list[DanmakuEvent]:
    events: list[DanmakuEvent] = []
    skipped = 0

    for comment in comments:
        if danmaku_filter.is_keyword_blocked(comment.m):
            continue
        try:
            attrs = parse_comment(comment.p)
        except ValueError as e:
            skipped += 1
            log.debug("comment_malformed", p=comment.p, error=str(e))
            continue

        source = classify_source(attrs.user_tag)
        r, g, b = unpack_color(attrs.color)
        events.append(
            DanmakuEvent(
                message=comment.m.replace("\n", "\\N"),
                count=grapheme_count(comment.m),
                time=attrs.time,
                r=r,
                g=g,
                b=b,
                source=source,
                blocked=blocks.is_blocked(source),
            )
        )

    events.sort(key=lambda e: e.time)
    if skipped:
        log.info("comments_skipped", skipped=skipped)
    return events
