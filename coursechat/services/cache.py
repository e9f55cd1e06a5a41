from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Dict, List, Optional, Tuple


class ExtractionCache:
    """Paragraph chunks of parsed documents, keyed by locator and content digest.

    One entry is kept per locator. A digest mismatch means the upload changed,
    so the stale entry is treated as a miss and replaced on the next ``set``.
    Least recently used locators are evicted past ``max_entries``.
    """

    def __init__(self, max_entries: int = 64) -> None:
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[str, Tuple[str, ...]]]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = Lock()

    def get(self, locator: str, digest: str) -> Optional[List[str]]:
        with self._lock:
            entry = self._entries.get(locator)
            if entry is None or entry[0] != digest:
                self._misses += 1
                return None
            self._entries.move_to_end(locator)
            self._hits += 1
            return list(entry[1])

    def set(self, locator: str, digest: str, chunks: List[str]) -> None:
        with self._lock:
            self._entries[locator] = (digest, tuple(chunks))
            self._entries.move_to_end(locator)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}
