from ritual.notifications.providers.base import PushTransport
from ritual.notifications.providers.log_only import LogPushTransport
from ritual.notifications.providers.celery import CeleryPushTransport
from ritual.notifications.providers.expo import ExpoPushClient, PushDeliveryFailed

__all__ = [
    "PushTransport",
    "LogPushTransport",
    "CeleryPushTransport",
    "ExpoPushClient",
    "PushDeliveryFailed",
]
