import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from ritual.container import Services, build_services
from ritual.core.config import settings
from ritual.notifications.providers import ExpoPushClient, PushDeliveryFailed
from ritual.notifications.types import PushPayload

logger = logging.getLogger("ritual.workers.push")


@asynccontextmanager
async def task_services() -> AsyncIterator[Services]:
    """Services bound to the current event loop; each celery run gets its own loop."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        yield build_services(sessionmaker=async_sessionmaker(engine, expire_on_commit=False), redis=redis)
    finally:
        await redis.aclose()
        await engine.dispose()


async def deliver(services: Services, payload: PushPayload, schedule_id: Optional[str], client: Optional[ExpoPushClient] = None) -> dict:
    """Send one push to the user's registered device and advance its schedule."""
    try:
        token = await services.push_tokens.get(payload.user_id)
        if not token:
            logger.info("push skipped, no device token user_id=%s kind=%s", payload.user_id, payload.kind)
            return {"ok": False, "error": "no_push_token"}
        try:
            result = await (client or ExpoPushClient()).send(token, payload)
        except PushDeliveryFailed as e:
            if e.error == "DeviceNotRegistered":
                logger.info("push token unregistered, dropping user_id=%s", payload.user_id)
                await services.push_tokens.forget(payload.user_id)
            raise
        return {"ok": True, "ticket": result.get("id")}
    finally:
        if schedule_id and payload.kind != "re_engagement":
            await services.scheduler.handle_fired(payload.user_id, schedule_id, payload.kind)


async def daily_tick(services: Services) -> dict:
    """Replay failed daily-mirror requests, then warm today's recommendations."""
    scheduler = services.scheduler
    replayed = failed = generated = 0
    for user_id in await scheduler.schedules.pending_user_ids():
        try:
            await scheduler.retry_pending(user_id)
            replayed += 1
        except Exception as e:
            failed += 1
            logger.warning("daily tick: pending replay failed user_id=%s reason=%r", user_id, e)
    for user_id in await scheduler.preferences.user_ids():
        try:
            await services.engine.generate_daily_recommendations(user_id)
            generated += 1
        except Exception as e:
            failed += 1
            logger.warning("daily tick: generation failed user_id=%s reason=%r", user_id, e)
    logger.info("daily tick done replayed=%s generated=%s failed=%s", replayed, generated, failed)
    return {"ok": failed == 0, "replayed": replayed, "generated": generated, "failed": failed}
