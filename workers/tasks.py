import asyncio
import logging

from .celery_app import celery
from ritual.core.logging import configure_logging
from ritual.notifications.types import PushPayload
from workers import notifications

configure_logging()
logger = logging.getLogger("ritual.workers.tasks")


@celery.task(name="tasks.deliver_push", bind=True)
def deliver_push(self, payload: dict) -> dict:
    """Fire a scheduled push. The celery task id is the schedule id."""

    async def _run() -> dict:
        async with notifications.task_services() as services:
            try:
                return await notifications.deliver(services, PushPayload.from_dict(payload), self.request.id)
            except Exception as e:
                logger.exception("deliver_push failed schedule_id=%s", self.request.id)
                return {"ok": False, "error": str(e)}

    return asyncio.run(_run())


@celery.task(name="tasks.daily_tick")
def daily_tick() -> dict:
    async def _run() -> dict:
        async with notifications.task_services() as services:
            return await notifications.daily_tick(services)

    return asyncio.run(_run())
