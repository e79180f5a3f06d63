"""
In-process TTL cache for problem list/detail reads.

Entries expire lazily: ``get`` checks the expiry of the entry it touches and
drops it when stale. Every ``sweep_every`` insertions a full sweep removes
expired keys that are never read again.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .logger import logger


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        default_ttl: float = 5 * 60,
        sweep_every: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.sweep_every = max(1, sweep_every)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._writes = 0

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        self._writes += 1
        if self._writes % self.sweep_every == 0:
            self.sweep()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in list(self._entries) if k.startswith(prefix)]
        for key in keys:
            self._entries.pop(key, None)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        now = self._clock()
        expired = [k for k, e in list(self._entries.items()) if now >= e.expires_at]
        for key in expired:
            self._entries.pop(key, None)
        if expired:
            logger.debug("Cache sweep removed expired entries", extra={"removed": len(expired)})
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        self.sweep()
        keys: List[str] = list(self._entries)
        return {"size": len(keys), "keys": keys}

    def __len__(self) -> int:
        return len(self._entries)
