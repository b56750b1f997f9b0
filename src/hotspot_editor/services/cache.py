"""Simple cache abstractions."""

from dataclasses import dataclass
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present."""

    def set(self, key: str, value: object) -> None:
        """Store a cached value."""

    def clear(self) -> None:
        """Drop every cached value."""


@dataclass
class BoundedCache(Cache):
    """In-memory cache that evicts its oldest key once full."""

    max_entries: int
    _entries: dict[str, object]

    def __init__(self, max_entries: int = 50) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries = {}

    def get(self, key: str) -> object | None:
        """Return a cached value if present."""
        return self._entries.get(key)

    def set(self, key: str, value: object) -> None:
        """Store a cached value, dropping the oldest key on overflow."""
        self._entries[key] = value
        if len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)

    def clear(self) -> None:
        """Drop every cached value."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
