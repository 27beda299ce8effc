"""Domain entities for danmaku comments and their normalized events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DanmakuSource(str, Enum):
    """Upstream site a comment was originally posted on."""

    BILIBILI = "bilibili"
    GAMER = "gamer"
    ACFUN = "acfun"
    QQ = "qq"
    IQIYI = "iqiyi"
    D = "d"
    DANDAN = "dandan"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str) -> DanmakuSource:
        """Case-insensitive lookup, ``UNKNOWN`` for anything unrecognised."""
        try:
            return cls(name.lower())
        except ValueError:
            return cls.UNKNOWN


class PlacementStatus(str, Enum):
    UNSET = "unset"
    PLACED = "placed"
    OVERLAPPING = "overlapping"


@dataclass(frozen=True)
class RawComment:
    """Comment as returned by the provider.

    ``p`` is ``"time,mode,color,userTag"``; ``m`` is the text.
    """

    p: str
    m: str


@dataclass
class Placement:
    """On-screen position assigned by a renderer."""

    x: float
    row: int
    step: float


@dataclass
class DanmakuEvent:
    """A normalized comment ready for rendering.

    Mutable: the renderer fills ``status``/``placement`` later.
    """

    message: str
    count: int  # width in grapheme clusters
    time: float  # seconds
    r: int
    g: int
    b: int
    source: DanmakuSource
    blocked: bool
    status: PlacementStatus = PlacementStatus.UNSET
    placement: Placement | None = None

    @property
    def color(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def place(self, placement: Placement) -> Placement:
        self.placement = placement
        self.status = PlacementStatus.PLACED
        return placement

    def mark_overlapping(self) -> None:
        self.placement = None
        self.status = PlacementStatus.OVERLAPPING
