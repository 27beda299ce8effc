"""Persistent key-value store used for downloaded comment sets."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CachePort(Protocol):
    """Async key-value store; entries never expire.

    Implementations are async context managers; ``get``/``set`` are only
    valid between ``__aenter__`` and ``aclose``.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when the key is absent."""
        ...

    async def set(self, key: str, value: Any) -> None: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
