"""Wardrobe inventory adapter. Falls back to the last snapshot, never to invented items."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from ritual.core.cache import MISS, cache_key
from ritual.core.config import settings
from ritual.core.errors import RetryExhausted
from ritual.schemas.wardrobe import WardrobeItem
from ritual.sources.base import ResilientSource
from ritual.sources.types import SourceResult

logger = logging.getLogger("ritual.sources.wardrobe")

_items_adapter = TypeAdapter(List[WardrobeItem])


class WardrobeStore(Protocol):
    async def list_items(self, user_id: str) -> List[WardrobeItem]:
        ...


class HttpWardrobeStore:
    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = (base_url or settings.WARDROBE_API_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.WARDROBE_TIMEOUT_S
        self._client = client

    async def list_items(self, user_id: str) -> List[WardrobeItem]:
        url = f"{self.base_url}/users/{user_id}/items"
        if self._client is not None:
            resp = await self._client.get(url, timeout=self.timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.get(url)
        resp.raise_for_status()
        data = resp.json()
        return _items_adapter.validate_python(data.get("items", []) if isinstance(data, dict) else data)


class InMemoryWardrobeStore:
    def __init__(self, items: Optional[Dict[str, List[WardrobeItem]]] = None) -> None:
        self.items: Dict[str, List[WardrobeItem]] = items or {}

    async def list_items(self, user_id: str) -> List[WardrobeItem]:
        return list(self.items.get(user_id, []))


class WardrobeSource(ResilientSource):
    service = "wardrobe"

    def __init__(self, store: WardrobeStore, cache, policy=None, **kwargs) -> None:
        super().__init__(cache, policy, **kwargs)
        self.store = store

    @staticmethod
    def key(user_id: str) -> str:
        return cache_key("wardrobe", user_id, "items")

    async def fetch(self, user_id: str) -> SourceResult[List[WardrobeItem]]:
        key = self.key(user_id)
        return await self._resolve(key, lambda: self.store.list_items(user_id), "list_items", user_id, settings.WARDROBE_TTL_S, user_id)

    def _dump(self, items: List[WardrobeItem]) -> Any:
        return _items_adapter.dump_python(items, mode="json")

    def _fresh(self, items: List[WardrobeItem]) -> SourceResult[List[WardrobeItem]]:
        if not items:
            return SourceResult.empty([])
        return SourceResult.ok(items)

    async def _fallback(self, key: str, user_id: str, error: RetryExhausted) -> SourceResult[List[WardrobeItem]]:
        cached = await self.cache.get(key)
        if cached is not MISS:
            try:
                items = _items_adapter.validate_python(cached)
            except ValidationError:
                await self.cache.invalidate(key)
            else:
                logger.info("wardrobe: serving cached snapshot user_id=%s items=%s reason=%r", user_id, len(items), error.last_error)
                if not items:
                    return SourceResult.empty([], "cached")
                return SourceResult.degraded(items, "cached")
        logger.warning("wardrobe: no snapshot available user_id=%s reason=%r", user_id, error.last_error)
        return SourceResult.empty([], "unavailable")
