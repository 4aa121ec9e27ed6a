from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OperationContext:
    """Identifies a call made through the retry envelope, for logs and errors."""

    service: str
    operation: str
    user_id: Optional[str] = None

    def describe(self) -> str:
        return f"service={self.service} operation={self.operation} user_id={self.user_id}"


class RetryExhausted(Exception):
    def __init__(self, context: OperationContext, last_error: BaseException, attempts: int) -> None:
        self.context = context
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"{context.describe()} failed after {attempts} attempts: {last_error!r}")


class NotificationSchedulingFailed(RetryExhausted):
    """Raised when a user-facing notification could not be registered."""


class RecommendationGenerationFailed(Exception):
    def __init__(self, user_id: str, cause: BaseException) -> None:
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"could not generate recommendations for user_id={user_id}: {cause!r}")


_MESSAGES = {
    "network": "We're having trouble connecting. Your mirror will use your recent preferences to create recommendations.",
    "weather": "Weather service is temporarily unavailable. We'll use seasonal patterns to suggest appropriate outfits.",
    "ai": "Our styling assistant is taking a quick break. We've prepared some classic combinations based on your wardrobe.",
    "notification": "Notifications are having issues, but your daily recommendations are ready in the app.",
    "storage": "We're having trouble saving your preferences right now, but everything will sync when connection improves.",
}

_RECOVERY_ACTIONS = {
    "network": ["Check your internet connection", "Try again in a few moments", "Use offline mode for basic features"],
    "weather": ["Check weather manually for today", "Use seasonal outfit suggestions", "Try refreshing in a few minutes"],
    "ai": ["Browse your wardrobe manually", "Use quick outfit combinations", "Check back later for new recommendations"],
    "notification": ["Open the app to see your recommendations", "Check notification settings", "Set a manual reminder"],
}


def user_friendly_message(context: str) -> str:
    return _MESSAGES.get(context, "Something went wrong, but we've got backup plans to keep your style game strong.")


def recovery_actions(context: str) -> list[str]:
    return list(_RECOVERY_ACTIONS.get(context, ["Try again later", "Contact support if the issue persists"]))
