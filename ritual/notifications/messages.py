"""Push copy for the three notification kinds."""

from typing import Any, Dict, Optional, Tuple

from ritual.notifications.types import PushPayload

DAILY_MIRROR_TITLE = "Your morning mirror is ready"
DAILY_MIRROR_BODY = "Confidence-building outfits await you. Start your day feeling ready for anything."

FEEDBACK_TITLE = "How did your outfit make you feel?"
FEEDBACK_BODY = "Your feedback helps us learn your style. It takes just 30 seconds."

# (max days inactive, tier name, title, body); the last tier is open-ended
RE_ENGAGEMENT_TIERS: Tuple[Tuple[Optional[int], str, str, str], ...] = (
    (4, "gentle", "Your mirror misses you", "Ready to feel confident again? Your personalized outfits are waiting."),
    (9, "rediscover", "Time to rediscover your style", "We've learned new things about your wardrobe. Come see what's new!"),
    (
        None,
        "ritual_awaits",
        "Your confidence ritual awaits",
        "Remember how good it felt to start your day with confidence? Let's bring that back.",
    ),
)


def re_engagement_tier(days_since_last_use: int) -> Tuple[str, str, str]:
    for max_days, name, title, body in RE_ENGAGEMENT_TIERS:
        if max_days is None or days_since_last_use <= max_days:
            return name, title, body
    raise AssertionError("unreachable")


def daily_mirror(user_id: str, extra: Optional[Dict[str, Any]] = None) -> PushPayload:
    data = {"type": "daily_mirror", "action": "open_mirror"}
    data.update(extra or {})
    return PushPayload("daily_mirror", user_id, DAILY_MIRROR_TITLE, DAILY_MIRROR_BODY, data)


def feedback_prompt(user_id: str, outfit_id: str) -> PushPayload:
    data = {"type": "feedback_prompt", "action": "rate_outfit", "outfit_id": outfit_id}
    return PushPayload("feedback_prompt", user_id, FEEDBACK_TITLE, FEEDBACK_BODY, data)


def re_engagement(user_id: str, days_since_last_use: int) -> PushPayload:
    tier, title, body = re_engagement_tier(days_since_last_use)
    data = {"type": "re_engagement", "tier": tier, "days_since_last_use": days_since_last_use}
    return PushPayload("re_engagement", user_id, title, body, data)
