from typing import Optional

from ritual.core.cache import MISS, TTLCache, cache_key

PUSH_TOKEN_TTL_S = 90 * 24 * 60 * 60


class PushTokenRegistry:
    """Device push tokens per user, kept in the shared cache store."""

    def __init__(self, cache: TTLCache, ttl_seconds: int = PUSH_TOKEN_TTL_S) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key(user_id: str) -> str:
        return cache_key("push_token", user_id)

    async def register(self, user_id: str, token: str) -> None:
        await self.cache.put(self.key(user_id), token, self.ttl_seconds)

    async def get(self, user_id: str) -> Optional[str]:
        token = await self.cache.get(self.key(user_id))
        return None if token is MISS else token

    async def forget(self, user_id: str) -> None:
        await self.cache.invalidate(self.key(user_id))
