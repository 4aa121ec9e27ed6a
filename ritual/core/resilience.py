"""Retry with exponential backoff for calls to external collaborators."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ritual.core.config import settings
from ritual.core.errors import OperationContext, RetryExhausted

T = TypeVar("T")

logger = logging.getLogger("ritual.resilience")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 0.25

    @classmethod
    def from_settings(cls, **overrides) -> "RetryPolicy":
        values = {
            "max_retries": settings.RETRY_MAX_RETRIES,
            "base_delay": settings.RETRY_BASE_DELAY_S,
            "max_delay": settings.RETRY_MAX_DELAY_S,
            "jitter": settings.RETRY_JITTER,
        }
        values.update(overrides)
        return cls(**values)

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        base = self.base_delay * (2 ** attempt)
        if self.jitter:
            base += base * self.jitter * rand()
        return min(base, self.max_delay)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    context: OperationContext,
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying on failure up to ``policy.max_retries`` times.

    Backoff between attempts is awaited, so other tasks keep running. When every
    attempt fails a :class:`RetryExhausted` is raised with the last error.
    """
    policy = policy or RetryPolicy.from_settings()
    last_error: BaseException | None = None
    attempts = 0
    for attempt in range(policy.max_retries + 1):
        attempts = attempt + 1
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "retry: attempt failed %s attempt=%s/%s reason=%r",
                context.describe(),
                attempts,
                policy.max_retries + 1,
                e,
            )
            if attempt == policy.max_retries:
                break
            await sleep(policy.delay_for(attempt))
    assert last_error is not None
    raise RetryExhausted(context, last_error, attempts) from last_error
