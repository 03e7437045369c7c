"""Bounded least-recently-used cache, one instance per result category."""
from collections import OrderedDict
from typing import Generic, Iterator, Optional, TypeVar

V = TypeVar("V")

DEFAULT_CAPACITY = 64


class ResponseCache(Generic[V]):
    """LRU map from request fingerprint to a fully built response.

    ``get`` and ``put`` bump recency, ``peek`` and ``contains`` do not.
    Not thread-safe on its own; callers hold the owning region's lock.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[str, V]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def contains(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[V]:
        """Return the cached value and mark it most recently used."""
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def peek(self, key: str) -> Optional[V]:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        """Insert or replace ``key``; evicts the least recently used entry when full."""
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def pop(self, key: str) -> Optional[V]:
        return self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
