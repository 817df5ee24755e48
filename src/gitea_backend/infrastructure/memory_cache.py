"""In-memory ContentCache — bounded LRU keyed by content SHA."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any


class InMemoryContentCache:
    """Concrete ``ContentCache`` holding at most *max_entries* values.

    Values are addressed by content SHA, so they never go stale; eviction is
    purely a memory bound.
    """

    def __init__(self, max_entries: int = 2048) -> None:
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self._max_entries = max_entries

    async def get(self, key: str) -> Any | None:
        try:
            self._entries.move_to_end(key)
        except KeyError:
            return None
        return self._entries[key]

    async def set(self, key: str, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)
