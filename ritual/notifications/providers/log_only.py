import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from ritual.notifications.types import PushPayload

logger = logging.getLogger("ritual.notifications")


@dataclass(frozen=True)
class _Registered:
    id: str
    payload: PushPayload
    fire_at: Optional[datetime]


class LogPushTransport:
    """Keeps registrations in memory and logs them. Used for local runs and tests."""

    def __init__(self, permission: bool = True) -> None:
        self.permission = permission
        self.scheduled: Dict[str, _Registered] = {}
        self.sent: List[PushPayload] = []
        self.cancelled: List[str] = []

    async def schedule(self, payload: PushPayload, fire_at: Optional[datetime]) -> str:
        schedule_id = uuid.uuid4().hex
        if fire_at is None:
            self.sent.append(payload)
            logger.info("push send user_id=%s kind=%s title=%s", payload.user_id, payload.kind, payload.title)
        else:
            self.scheduled[schedule_id] = _Registered(schedule_id, payload, fire_at)
            logger.info(
                "push scheduled user_id=%s kind=%s fire_at=%s id=%s",
                payload.user_id,
                payload.kind,
                fire_at.isoformat(),
                schedule_id,
            )
        return schedule_id

    async def cancel(self, schedule_id: str) -> None:
        if self.scheduled.pop(schedule_id, None) is not None:
            self.cancelled.append(schedule_id)
            logger.info("push cancelled id=%s", schedule_id)

    async def has_permission(self) -> bool:
        return self.permission

    def pending_for(self, user_id: str, kind: Optional[str] = None) -> List[_Registered]:
        return [
            r
            for r in self.scheduled.values()
            if r.payload.user_id == user_id and (kind is None or r.payload.kind == kind)
        ]
