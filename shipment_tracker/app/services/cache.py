"""
Caching Service.

Memory-based TTL cache for provider auth tokens. Tracking results are
never cached; every request resolves live.
"""

import time
from typing import Any, Callable, Dict, Optional


class TTLCache:

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, dict] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if not entry:
            return None

        if self._clock() >= entry["expires_at"]:
            del self._store[key]
            return None

        return entry["data"]

    async def set(self, key: str, data: Any, ttl_seconds: float = 300):
        if ttl_seconds <= 0:
            self._store.pop(key, None)
            return
        self._store[key] = {
            "data": data,
            "expires_at": self._clock() + ttl_seconds
        }

    async def delete(self, key: str):
        self._store.pop(key, None)

    async def clear(self):
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
