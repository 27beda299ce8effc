"""Port for user-visible notifications on the host player."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NotifierPort(Protocol):
    def notify(self, message: str) -> None: ...
