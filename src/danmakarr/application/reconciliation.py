"""Catalog/library season reconciliation.

Pure logic, no I/O. Maps a library (season, episode) pair onto the flat,
search-ordered list of catalog entries returned by the danmaku provider.

The provider's search order is *assumed* to follow chronological season
order. The rules below are evaluated in a fixed order and the first one
that fires wins; when the two segmentations can't be aligned the function
fails with a ``ResolutionError`` instead of guessing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from danmakarr.domain.entities.episode import (
    CatalogEntry,
    EpisodeKind,
    SeasonCount,
    encode_episode_id,
)
from danmakarr.domain.exceptions import (
    NeedMoreInfo,
    NoMatch,
    SeriesInfoEmpty,
    TooManyResults,
)

log = structlog.get_logger(__name__)

# Largest local episode number that fits the zero-padded id encoding.
_MAX_LOCAL_EPISODE = 9999


@dataclass(frozen=True)
class Resolution:
    """Catalog entry + in-entry episode number chosen by a rule.

    ``season_aligned`` is True when the chosen entry covers the whole
    library season with unshifted numbering, i.e. every episode of that
    season maps to the same entry with ``local_episode == E``.
    """

    catalog_id: int
    local_episode: int
    rule: str
    season_aligned: bool = False

    @property
    def episode_id(self) -> int:
        if self.local_episode > _MAX_LOCAL_EPISODE:
            log.warning(
                "episode_id_overflow",
                catalog_id=self.catalog_id,
                local_episode=self.local_episode,
            )
        return encode_episode_id(self.catalog_id, self.local_episode)


def dan_sum(entries: Sequence[CatalogEntry], k: int) -> int:
    """Total episode count of the first ``k`` catalog entries."""
    if k < 0 or k > len(entries):
        raise NeedMoreInfo("beyond bound of list")
    return sum(entry.episode_count for entry in entries[:k])


def em_sum(seasons: Sequence[SeasonCount], k: int) -> int:
    """Total episode count of the first ``k`` library seasons."""
    if k < 0 or k > len(seasons):
        raise NeedMoreInfo("beyond bound of list")
    return sum(season.episode_count for season in seasons[:k])


def _at(entries: Sequence[CatalogEntry], index: int) -> CatalogEntry:
    if index < 0 or index >= len(entries):
        raise NeedMoreInfo("beyond bound of list")
    return entries[index]


def _pick(
    entries: Sequence[CatalogEntry],
    index: int,
    local_episode: int,
    rule: str,
    *,
    aligned: bool = False,
) -> Resolution:
    entry = _at(entries, index)
    return Resolution(
        catalog_id=entry.catalog_id,
        local_episode=local_episode,
        rule=rule,
        season_aligned=aligned,
    )


def resolve_movie(entries: Sequence[CatalogEntry]) -> Resolution:
    """Movies always take the first search result, episode 1."""
    return _pick(entries, 0, 1, "movie")


def resolve_ova(entries: Sequence[CatalogEntry], episode: int) -> Resolution:
    """OVAs are matched purely by position: the E-th result, episode E."""
    if episode < 1 or len(entries) < episode:
        log.error("no_matching_ova", results=len(entries), episode=episode)
        raise NoMatch("no matching episode with info")
    return _pick(entries, episode - 1, episode, "ova")


def resolve_series(
    entries: Sequence[CatalogEntry],
    seasons: Sequence[SeasonCount],
    season: int,
    episode: int,
) -> Resolution:
    """Resolve a TV episode against the library's per-season counts.

    Args:
        entries: Catalog search results (A), provider order.
        seasons: Library season counts (B), ascending, season 0 excluded.
        season: Library season index (S).
        episode: Episode index within the season (E).
    """
    if not seasons:
        log.error("series_info_empty")
        raise SeriesInfoEmpty("no matching episode with info")

    s, e = season, episode
    last_season = seasons[-1]

    # Same number of entries as seasons: assume one entry per season.
    if len(entries) == last_season.season_index:
        return _pick(entries, s - 1, e, "season_count", aligned=True)

    # Cumulative counts agree up to this season. A season beyond either list
    # is not a match here; the partial-library rules below handle it.
    if (
        0 <= s <= min(len(entries), len(seasons))
        and dan_sum(entries, s) == em_sum(seasons, s)
    ):
        return _pick(entries, s - 1, e, "cumulative", aligned=True)

    # Library doesn't start at season 1 (earlier seasons missing locally).
    if seasons[0].season_index != 1:
        if s != last_season.season_index:
            log.error("hard_to_decide", reason="season_not_last")
            raise NeedMoreInfo("need more info, skip")
        if len(entries) < last_season.season_index:
            log.error("hard_to_decide", reason="too_few_entries")
            raise NeedMoreInfo("need more info, skip")

        after = _at(entries, s)
        if after.episode_count == last_season.episode_count:
            return _pick(entries, s, e, "partial_library", aligned=True)

        current = _at(entries, s - 1)
        if after.episode_count + current.episode_count == last_season.episode_count:
            if e <= current.episode_count:
                return _pick(entries, s - 1, e, "partial_library_split")
            return _pick(
                entries, s, e - current.episode_count, "partial_library_split"
            )

        log.error("hard_to_decide", reason="partial_library_mismatch")
        raise NeedMoreInfo("need more info, skip")

    if dan_sum(entries, len(entries)) != em_sum(seasons, len(seasons)):
        log.error("hard_to_decide", reason="total_mismatch")
        raise NeedMoreInfo("need more info, skip")

    if len(entries) > len(seasons):
        found = _resolve_catalog_split(entries, seasons, s, e)
        if found is not None:
            return found

    if len(entries) < len(seasons):
        found = _resolve_catalog_merged(entries, seasons, s, e)
        if found is not None:
            return found

    log.error("no_matching_result", season=s, episode=e)
    raise NoMatch("not matching episode with info")


def _resolve_catalog_split(
    entries: Sequence[CatalogEntry],
    seasons: Sequence[SeasonCount],
    s: int,
    e: int,
) -> Resolution | None:
    """Catalog split one library season across several entries.

    Finds the first (i, x) where entries ``S-1+x .. S-1+i`` exactly cover
    season S, then locates E inside those (at most three) entries.
    """
    offset = len(entries) - len(seasons)
    for i in range(offset + 1):
        if dan_sum(entries, s + i) != em_sum(seasons, s):
            continue
        for x in range(i + 1):
            if dan_sum(entries, s - 1 + x) != em_sum(seasons, s - 1):
                continue

            first = _at(entries, s - 1 + x)
            if i == x:
                return _pick(entries, s - 1 + i, e, "catalog_split", aligned=True)
            if i == x + 1 and e <= first.episode_count:
                return _pick(entries, s - 1 + x, e, "catalog_split")
            if i == x + 1 and e > first.episode_count:
                return _pick(entries, s + x, e - first.episode_count, "catalog_split")
            if i == x + 2:
                if e <= first.episode_count:
                    return _pick(entries, s - 1 + x, e, "catalog_split")
                second = _at(entries, s + x)
                if e <= first.episode_count + second.episode_count:
                    return _pick(entries, s + x, e - first.episode_count, "catalog_split")
                return _pick(
                    entries,
                    s + x + 1,
                    e - first.episode_count - second.episode_count,
                    "catalog_split",
                )

            log.error("too_many_results", i=i, x=x)
            raise TooManyResults("too many results")
    return None


def _resolve_catalog_merged(
    entries: Sequence[CatalogEntry],
    seasons: Sequence[SeasonCount],
    s: int,
    e: int,
) -> Resolution | None:
    """Catalog merged several library seasons into one entry."""
    for i in range(1, len(entries) + 1):
        if dan_sum(entries, i) == em_sum(seasons, s):
            if dan_sum(entries, i - 1) == em_sum(seasons, s - 1):
                return _pick(entries, i, e, "catalog_merged", aligned=True)
            if dan_sum(entries, i - 1) == em_sum(seasons, s - 2):
                shift = _season_at(seasons, s - 2).episode_count
                return _pick(entries, i, e + shift, "catalog_merged")

        if dan_sum(entries, i - 1) == em_sum(seasons, s - 1) and em_sum(
            seasons, s + 1
        ) == dan_sum(entries, i):
            return _pick(entries, i, e, "catalog_merged", aligned=True)
    return None


def _season_at(seasons: Sequence[SeasonCount], index: int) -> SeasonCount:
    if index < 0 or index >= len(seasons):
        raise NeedMoreInfo("beyond bound of list")
    return seasons[index]


def resolve_kind(
    kind: EpisodeKind,
    entries: Sequence[CatalogEntry],
    episode: int,
) -> Resolution | None:
    """Rules that need no library season counts (movie, OVA).

    Returns None for TV series, which need ``resolve_series``.
    """
    if not entries:
        raise NoMatch("no matching episode with info")
    if kind is EpisodeKind.MOVIE:
        return resolve_movie(entries)
    if kind is EpisodeKind.OVA:
        return resolve_ova(entries, episode)
    if kind is EpisodeKind.TV_SERIES:
        return None
    raise NoMatch(f"unsupported item kind: {kind.value}")
