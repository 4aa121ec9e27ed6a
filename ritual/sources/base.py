from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from ritual.core.cache import TTLCache
from ritual.core.errors import OperationContext, RetryExhausted
from ritual.core.resilience import RetryPolicy, Sleep, execute_with_retry
from ritual.sources.types import SourceResult

T = TypeVar("T")


class ResilientSource(Generic[T]):
    """Shared plumbing for adapters: retry the call, refresh the cache on success,
    and hand over to ``_fallback`` once retries are exhausted."""

    service: str = "source"

    def __init__(
        self,
        cache: TTLCache,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep

    async def _call(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        user_id: Optional[str],
    ) -> T:
        context = OperationContext(service=self.service, operation=operation_name, user_id=user_id)
        return await execute_with_retry(operation, context, self.policy, sleep=self._sleep)

    async def _resolve(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        user_id: Optional[str],
        ttl: int,
        subject: Any,
    ) -> SourceResult[T]:
        try:
            value = await self._call(operation, operation_name, user_id)
        except RetryExhausted as e:
            return await self._fallback(key, subject, e)
        await self.cache.put(key, self._dump(value), ttl)
        return self._fresh(value)

    def _dump(self, value: T) -> Any:
        return value.model_dump(mode="json")

    def _fresh(self, value: T) -> SourceResult[T]:
        return SourceResult.ok(value)

    async def _fallback(self, key: str, subject: Any, error: RetryExhausted) -> SourceResult[T]:
        raise NotImplementedError
