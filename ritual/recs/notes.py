"""Confidence notes and reasoning strings for outfit recommendations.

Notes speak to the user in the second person, mention today's weather or
occasion, follow the user's chosen tone and never use negative, body-shape or
cultural descriptors. ``is_note_safe`` is the single check for those rules and
is also applied to any externally generated note.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ritual.schemas.notifications import ConfidenceNoteStyle
from ritual.schemas.style import StyleProfile
from ritual.schemas.wardrobe import WardrobeItem
from ritual.schemas.weather import WeatherContext

NEGATIVE_WORDS = {
    "bad", "ugly", "awful", "terrible", "horrible", "hideous", "worst", "wrong",
    "boring", "sloppy", "frumpy", "unflattering", "dull", "tacky", "cheap", "outdated",
}
BODY_SHAPE_WORDS = {
    "fat", "thin", "skinny", "slim", "slimming", "curvy", "petite", "plus-size", "overweight",
    "chubby", "hips", "thighs", "belly", "tummy", "waistline", "figure", "flattering", "bulky",
}
CULTURAL_WORDS = {"exotic", "ethnic", "tribal", "oriental", "native"}
BANNED_WORDS = NEGATIVE_WORDS | BODY_SHAPE_WORDS | CULTURAL_WORDS

_BANNED_RE = re.compile(r"\b(" + "|".join(re.escape(w) for w in sorted(BANNED_WORDS)) + r")\b", re.IGNORECASE)
_SECOND_PERSON_RE = re.compile(r"\b(you|your|you're|yours|yourself|you've)\b", re.IGNORECASE)

MAX_NOTE_LENGTH = 400


def is_note_safe(note: Optional[str]) -> bool:
    if not note or not note.strip() or len(note) > MAX_NOTE_LENGTH:
        return False
    if _BANNED_RE.search(note):
        return False
    return bool(_SECOND_PERSON_RE.search(note))


@dataclass(frozen=True)
class NoteContext:
    weather: WeatherContext
    profile: StyleProfile
    style: ConfidenceNoteStyle
    now: datetime
    approximate: bool = False


_WEATHER_LINES = {
    "sunny": "Bright {feel} weather pairs well with your look today.",
    "cloudy": "Soft, {feel} skies suit the easy balance you've put together.",
    "rainy": "This choice suits today's {feel}, rainy mood while keeping you comfortable.",
    "snowy": "Snowy, {feel} air calls for layers, and you have them covered.",
    "windy": "A {feel} breeze meets your look with ease today.",
    "stormy": "Stormy skies outside, steady confidence inside for you today.",
}

_TAGLINES = (
    "your style tells a story",
    "own your look today",
    "confidence looks good on you",
    "let your style lead the way",
    "your look is pure you",
)


def temperature_feel(temp: float) -> str:
    if temp < 5:
        return "crisp"
    if temp < 12:
        return "cool"
    if temp < 20:
        return "mild"
    if temp < 27:
        return "warm"
    return "hot"


def has_positive_history(items: Sequence[WardrobeItem], profile: StyleProfile) -> bool:
    ids = {i.id for i in items}
    for pattern in profile.confidence_patterns:
        if pattern.item_combination and set(pattern.item_combination) <= ids and pattern.average_rating >= 4.0:
            return True
    return any(i.usage_stats.average_rating >= 4.5 or i.usage_stats.compliments_received > 0 for i in items)


def top_occasion(items: Sequence[WardrobeItem], profile: StyleProfile) -> Optional[str]:
    prefs = {k.lower(): v for k, v in profile.occasion_preferences.items()}
    best: Optional[str] = None
    best_weight = 0.0
    for item in items:
        for tag in item.tags:
            w = prefs.get(tag.lower(), 0.0)
            if w > best_weight:
                best, best_weight = tag.lower(), w
    return best


def _neglected(items: Sequence[WardrobeItem], now: datetime, days: int = 30) -> bool:
    cutoff = now - timedelta(days=days)
    return any(i.usage_stats.last_worn is None or i.usage_stats.last_worn < cutoff for i in items)


def _tagline(items: Sequence[WardrobeItem]) -> str:
    digest = hashlib.sha256("|".join(i.id for i in items).encode()).digest()
    return _TAGLINES[digest[0] % len(_TAGLINES)]


APPROXIMATE_LINE = "We worked from your most recent saved details, so treat this as a close match for you."
FALLBACK_NOTE = "You look ready for today, and your confidence shows."


def _join(parts: Sequence[str], tagline: Optional[str]) -> str:
    note = " ".join(p for p in parts if p)
    return f"{note.rstrip('.!')}, {tagline}." if tagline else note


def generate_confidence_note(items: Sequence[WardrobeItem], ctx: NoteContext) -> str:
    if has_positive_history(items, ctx.profile):
        opener = "You felt great in this before, so lean into that confidence today."
    elif _neglected(items, ctx.now):
        opener = "It's time to rediscover a piece you haven't worn in a while and let it shine."
    else:
        opener = "You're ready for the day: calm, poised and absolutely you."

    weather_line = _WEATHER_LINES.get(ctx.weather.condition, _WEATHER_LINES["cloudy"]).format(
        feel=temperature_feel(ctx.weather.temperature)
    )
    occasion = top_occasion(items, ctx.profile)
    occasion_line = f"It feels right at home for {occasion}, just like you." if occasion else ""

    colors = list(dict.fromkeys(c.lower() for i in items for c in i.colors))[:3]
    palette = " and ".join(colors)

    color_line = style_line = closer = ""
    if ctx.style == "witty":
        closer = "You're set to turn heads, subtly of course!"
        parts = [opener, weather_line, occasion_line, closer]
    elif ctx.style == "poetic":
        color_line = (
            f"Your {palette} palette moves like a quiet melody."
            if palette
            else "Your look balances ease and intention."
        )
        closer = "Move through the day with your own quiet brilliance."
        parts = [opener, color_line, weather_line, occasion_line, closer]
    else:
        if ctx.profile.preferred_styles:
            style_line = f"Your {ctx.profile.preferred_styles[0].lower()} style shines through."
        parts = [opener, weather_line, occasion_line, style_line]

    if ctx.approximate:
        parts.append(APPROXIMATE_LINE)

    # weather and approximation lines are never trimmed
    tagline: Optional[str] = _tagline(items)
    trimmable = [p for p in (style_line, color_line, occasion_line, closer, opener) if p]
    while True:
        note = _join(parts, tagline)
        if is_note_safe(note):
            return note
        if tagline:
            tagline = None
        elif trimmable:
            parts.remove(trimmable.pop(0))
        else:
            break
    return " ".join(p for p in (FALLBACK_NOTE, weather_line, APPROXIMATE_LINE if ctx.approximate else "") if p)


def generate_reasoning(items: Sequence[WardrobeItem], weather: WeatherContext, now: datetime, cold_c: float = 10.0, hot_c: float = 27.0) -> List[str]:
    reasons: List[str] = []
    temp = weather.temperature
    if temp < cold_c:
        reasons.append("Perfect for cold weather, keeps you warm and stylish")
    elif temp < 18:
        reasons.append("Ideal for cool weather conditions")
    elif temp > hot_c:
        reasons.append("Light and breathable for warm weather")
    elif temp > 24:
        reasons.append("Comfortable for warm temperature")

    condition_reason = {
        "rainy": "Weather-appropriate for rainy conditions",
        "sunny": "Perfect for sunny weather",
        "cloudy": "Great for overcast conditions",
        "windy": "Suitable for windy weather",
        "snowy": "Layered for snowy weather",
        "stormy": "Sturdy choice for stormy weather",
    }.get(weather.condition)
    if condition_reason:
        reasons.append(condition_reason)

    cutoff = now - timedelta(days=14)
    if any(i.usage_stats.last_worn is None or i.usage_stats.last_worn < cutoff for i in items):
        reasons.append("Features items you haven't worn recently")
    if len({c.lower() for i in items for c in i.colors}) <= 3:
        reasons.append("Harmonious color palette")
    if any(i.usage_stats.average_rating > 4 for i in items):
        reasons.append("Includes your favorite high-confidence pieces")
    return reasons
