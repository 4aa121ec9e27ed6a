import logging
from typing import Any, Dict, Optional

import httpx

from ritual.core.config import settings
from ritual.notifications.types import PushPayload

logger = logging.getLogger("ritual.notifications.expo")


class PushDeliveryFailed(Exception):
    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        # Expo error code, e.g. "DeviceNotRegistered"
        self.error = error


class ExpoPushClient:
    """Sends one message to the Expo push API."""

    def __init__(self, url: Optional[str] = None, timeout_seconds: float = 10.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.url = url or settings.EXPO_PUSH_URL
        self.timeout_seconds = timeout_seconds
        self._client = client

    @staticmethod
    def message(token: str, payload: PushPayload) -> Dict[str, Any]:
        return {
            "to": token,
            "title": payload.title,
            "body": payload.body,
            "sound": "default",
            "data": {"kind": payload.kind, **payload.data},
        }

    async def send(self, token: str, payload: PushPayload) -> Dict[str, Any]:
        body = self.message(token, payload)
        if self._client is not None:
            resp = await self._client.post(self.url, json=body, timeout=self.timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.post(self.url, json=body)
        resp.raise_for_status()
        data = resp.json().get("data") or {}
        if isinstance(data, list):
            data = data[0] if data else {}
        if data.get("status") == "error":
            details = data.get("details") or {}
            raise PushDeliveryFailed(data.get("message") or "expo rejected the message", details.get("error"))
        logger.info("expo push sent user_id=%s kind=%s", payload.user_id, payload.kind)
        return data
