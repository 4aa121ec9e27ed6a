from datetime import datetime
from typing import Optional, Protocol

from ritual.notifications.types import PushPayload


class PushTransport(Protocol):
    async def schedule(self, payload: PushPayload, fire_at: Optional[datetime]) -> str:
        """Register a push for ``fire_at`` (``None`` sends now); returns the transport id."""
        ...

    async def cancel(self, schedule_id: str) -> None:
        ...

    async def has_permission(self) -> bool:
        ...
