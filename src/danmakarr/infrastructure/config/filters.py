"""Build the runtime DanmakuFilter from configuration."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from danmakarr.domain.entities.danmaku import DanmakuSource
from danmakarr.domain.entities.filter import DanmakuFilter

from .schema import FilterConfig

log = structlog.get_logger(__name__)


class BilibiliFilterRule(BaseModel):
    """One entry of a Bilibili block-list export."""

    type: int
    filter: str
    opened: bool


_RULES = TypeAdapter(list[BilibiliFilterRule])


def load_bilibili_keywords(path: Path) -> list[str]:
    """Enabled text rules (``type == 0``) from a Bilibili block-list export.

    Unreadable or malformed files are logged and contribute nothing.
    """
    try:
        with path.open("r", encoding="utf-8") as fh:
            rules = _RULES.validate_python(json.load(fh))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        log.error("bilibili_rules_load_failed", path=str(path), error=str(e))
        return []

    keywords = [rule.filter for rule in rules if rule.type == 0 and rule.opened]
    log.debug("bilibili_rules_loaded", path=str(path), keywords=len(keywords))
    return keywords


def parse_sources(names: list[str]) -> frozenset[DanmakuSource]:
    """Map configured source names, silently dropping unknown ones."""
    sources = (DanmakuSource.from_name(name.strip()) for name in names)
    return frozenset(s for s in sources if s is not DanmakuSource.UNKNOWN)


def build_filter(config: FilterConfig) -> DanmakuFilter:
    keywords = list(config.keywords)
    if config.bilibili_rules is not None:
        keywords.extend(load_bilibili_keywords(config.bilibili_rules))
    return DanmakuFilter(keywords=keywords, sources=parse_sources(config.sources))
