"""Redis counter store (requires ``pip install clouddrive[redis]``)."""

from __future__ import annotations

try:
    import redis.asyncio as aioredis
    from redis.exceptions import RedisError
except ImportError as exc:
    raise ImportError(
        "Redis counter store requires redis. Install it with: pip install 'clouddrive[redis]'"
    ) from exc

from clouddrive.errors import StoreUnavailable


class RedisCounterStore:
    """Store counter values as plain Redis strings under a key prefix."""

    def __init__(self, url: str, key_prefix: str = "clouddrive") -> None:
        self._client = aioredis.Redis.from_url(url, decode_responses=True)
        self._key_prefix = key_prefix

    def _key(self, name: str) -> str:
        return f"{self._key_prefix}:{name}" if self._key_prefix else name

    async def get(self, name: str) -> str | None:
        try:
            return await self._client.get(self._key(name))
        except RedisError as exc:
            raise StoreUnavailable(f"Redis get failed for {name}: {exc}") from exc

    async def put(self, name: str, value: str) -> None:
        try:
            await self._client.set(self._key(name), value)
        except RedisError as exc:
            raise StoreUnavailable(f"Redis put failed for {name}: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
