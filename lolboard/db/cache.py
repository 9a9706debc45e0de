# cache.py – cache TTL (JSON) au-dessus d'un KeyValueStore
# Le cache est une optimisation : toute erreur de stockage = miss.

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

from lolboard.db.store import KeyValueStore

log = logging.getLogger(__name__)

CACHE_PREFIX = "lol-app-cache-"
DEFAULT_TTL_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(kind: str, *params: str) -> str:
    """cache_key("summoner", "Faker", "KR1") → "summoner-Faker-KR1" (casse conservée)."""
    return "-".join((kind, *params))


class KeyValueCache:
    """
    TTL cache storing ``{data, timestamp, expiry}`` envelopes under
    ``prefix + key``. Expired or corrupt entries are deleted on read.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str = CACHE_PREFIX,
        clock: Callable[[], int] = now_ms,
        default_ttl_ms: int = DEFAULT_TTL_MS,
    ):
        self.store = store
        self.prefix = prefix
        self._clock = clock
        self.default_ttl_ms = default_ttl_ms

    def _full(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        now = self._clock()
        try:
            raw = json.dumps({"data": value, "timestamp": now, "expiry": now + ttl})
            await self.store.set(self._full(key), raw)
        except Exception as e:
            log.error(f"Cache write error for {key}: {e}")

    async def get(self, key: str) -> Any:
        full = self._full(key)
        try:
            raw = await self.store.get(full)
        except Exception as e:
            log.warning(f"Cache read error for {key}: {e}")
            return None
        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            expired = self._clock() > entry["expiry"]
            data = entry["data"]
        except (ValueError, TypeError, KeyError) as e:
            log.warning(f"Corrupt cache entry {key}, dropping it: {e}")
            await self._delete(full)
            return None

        if expired:
            await self._delete(full)
            return None
        log.debug(f"Cache hit: {key}")
        return data

    async def remove(self, key: str) -> None:
        await self._delete(self._full(key))

    async def clear_all(self) -> None:
        try:
            for k in await self.store.keys(self.prefix):
                await self.store.delete(k)
        except Exception as e:
            log.error(f"Cache clear error: {e}")

    async def _delete(self, full_key: str) -> None:
        try:
            await self.store.delete(full_key)
        except Exception as e:
            log.error(f"Cache remove error for {full_key}: {e}")
