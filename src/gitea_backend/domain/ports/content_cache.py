"""Port: content cache keyed by content SHA."""

from __future__ import annotations

from typing import Any, Protocol


class ContentCache(Protocol):
    """Abstract contract for a cache of immutable, SHA-addressed values."""

    async def get(self, key: str) -> Any | None:
        """Return the cached value or ``None`` on a miss."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*."""
        ...
