from __future__ import annotations

from .diskcache_adapter import DiskcacheAdapter

__all__ = ["DiskcacheAdapter"]
