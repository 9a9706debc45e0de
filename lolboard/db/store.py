# store.py – backends clé/valeur persistants (Redis, ou mémoire en dev/tests)

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

import redis.asyncio as aioredis

from lolboard.config import Settings


class KeyValueStore(Protocol):
    """Raw string storage. Atomic per call, no expiry logic of its own."""

    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, raw: str) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def keys(self, prefix: str) -> List[str]: ...
    async def ping(self) -> bool: ...


class RedisStore:
    def __init__(self, client: aioredis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        return cls(aioredis.from_url(url, encoding="utf-8", decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set(self, key: str, raw: str) -> None:
        await self._redis.set(key, raw)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def keys(self, prefix: str) -> List[str]:
        return [k async for k in self._redis.scan_iter(match=f"{prefix}*")]

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()


class MemoryStore:
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, raw: str) -> None:
        self.data[key] = raw

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def keys(self, prefix: str) -> List[str]:
        return [k for k in self.data if k.startswith(prefix)]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


def build_store(cfg: Settings) -> KeyValueStore:
    if cfg.CACHE_BACKEND == "memory":
        return MemoryStore()
    return RedisStore.from_url(cfg.REDIS_URL)
