"""Process-wide geocode cache shared by concurrent optimization requests."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Optional

from ...models.domain import Coordinate
from .gazetteer import normalize_address


class GeocodeCache:
    """Thread-safe address -> coordinate map.

    Keys are normalized address strings. With ``max_entries`` unset the cache
    never evicts; otherwise the least recently used entry is dropped.
    Concurrent writes for one key are last-writer-wins.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, Coordinate] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, address: str) -> Optional[Coordinate]:
        key = normalize_address(address)
        with self._lock:
            coordinate = self._entries.get(key)
            if coordinate is not None and self.max_entries is not None:
                self._entries.move_to_end(key)
            return coordinate

    def put(self, address: str, coordinate: Coordinate) -> None:
        key = normalize_address(address)
        with self._lock:
            self._entries[key] = coordinate
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
