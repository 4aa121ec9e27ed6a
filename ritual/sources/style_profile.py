"""Style profile adapter. Falls back to the cached profile, then to a neutral one."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

import httpx
from pydantic import ValidationError

from ritual.core.cache import MISS, cache_key
from ritual.core.config import settings
from ritual.core.errors import RetryExhausted
from ritual.schemas.style import StyleProfile
from ritual.sources.base import ResilientSource
from ritual.sources.types import SourceResult

logger = logging.getLogger("ritual.sources.style_profile")


class StyleProfileStore(Protocol):
    async def get(self, user_id: str) -> StyleProfile:
        ...


class HttpStyleProfileStore:
    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = (base_url or settings.WARDROBE_API_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.WARDROBE_TIMEOUT_S
        self._client = client

    async def get(self, user_id: str) -> StyleProfile:
        url = f"{self.base_url}/users/{user_id}/style-profile"
        if self._client is not None:
            resp = await self._client.get(url, timeout=self.timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.get(url)
        resp.raise_for_status()
        return StyleProfile.model_validate(resp.json())


class InMemoryStyleProfileStore:
    def __init__(self, profiles: Optional[Dict[str, StyleProfile]] = None) -> None:
        self.profiles: Dict[str, StyleProfile] = profiles or {}

    async def get(self, user_id: str) -> StyleProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            # no learned profile yet
            return StyleProfile.neutral(user_id)
        return profile


class StyleProfileSource(ResilientSource):
    service = "style_profile"

    def __init__(self, store: StyleProfileStore, cache, policy=None, **kwargs) -> None:
        super().__init__(cache, policy, **kwargs)
        self.store = store

    @staticmethod
    def key(user_id: str) -> str:
        return cache_key("style_profile", user_id)

    async def fetch(self, user_id: str) -> SourceResult[StyleProfile]:
        key = self.key(user_id)
        return await self._resolve(key, lambda: self.store.get(user_id), "get", user_id, settings.STYLE_PROFILE_TTL_S, user_id)

    async def _fallback(self, key: str, user_id: str, error: RetryExhausted) -> SourceResult[StyleProfile]:
        cached = await self.cache.get(key)
        if cached is not MISS:
            try:
                profile = StyleProfile.model_validate(cached)
            except ValidationError:
                await self.cache.invalidate(key)
            else:
                logger.info("style_profile: serving cached profile user_id=%s reason=%r", user_id, error.last_error)
                return SourceResult.degraded(profile, "cached")
        logger.info("style_profile: serving neutral profile user_id=%s reason=%r", user_id, error.last_error)
        return SourceResult.degraded(StyleProfile.neutral(user_id), "default")
