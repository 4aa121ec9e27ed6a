import asyncio
import logging
from datetime import datetime
from typing import Optional

from ritual.notifications.types import PushPayload

logger = logging.getLogger("ritual.notifications")


class CeleryPushTransport:
    """Hands pushes to the ``tasks.deliver_push`` worker with an ETA; revokes to cancel."""

    task_name = "tasks.deliver_push"

    def __init__(self, app=None) -> None:
        self._app = app

    @property
    def app(self):
        if self._app is None:
            from workers.celery_app import celery

            self._app = celery
        return self._app

    async def schedule(self, payload: PushPayload, fire_at: Optional[datetime]) -> str:
        kwargs = {"args": [payload.to_dict()]}
        if fire_at is not None:
            kwargs["eta"] = fire_at
        result = await asyncio.to_thread(self.app.send_task, self.task_name, **kwargs)
        logger.info("push queued user_id=%s kind=%s task_id=%s", payload.user_id, payload.kind, result.id)
        return result.id

    async def cancel(self, schedule_id: str) -> None:
        await asyncio.to_thread(self.app.control.revoke, schedule_id)

    async def has_permission(self) -> bool:
        # a reachable broker is the server-side notion of permission
        conn = self.app.connection_for_write()
        try:
            await asyncio.to_thread(conn.ensure_connection, max_retries=1)
        finally:
            conn.release()
        return True
