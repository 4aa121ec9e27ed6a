from ritual.recs.strategies.base import clamp, mean
from ritual.recs.types import Candidate, ScoringContext
from ritual.schemas.wardrobe import WardrobeItem
from ritual.schemas.weather import WeatherContext

WARM_TAGS = ("warm", "winter", "wool", "thermal", "fleece", "knit")
LIGHT_TAGS = ("summer", "lightweight", "breathable", "linen", "sleeveless")
LIGHT_SUBCATEGORIES = {"t-shirt", "tank", "tank top", "shorts", "sandals", "flip-flops"}


def is_warm(item: WardrobeItem) -> bool:
    return item.has_tag(*WARM_TAGS) or (item.subcategory or "").lower() in {"coat", "parka", "puffer", "sweater"}


def is_light(item: WardrobeItem) -> bool:
    return item.has_tag(*LIGHT_TAGS) or (item.subcategory or "").lower() in LIGHT_SUBCATEGORIES


def item_weather_score(item: WardrobeItem, weather: WeatherContext, cold_c: float, hot_c: float) -> float:
    score = 0.5
    temp = weather.temperature
    warm, light = is_warm(item), is_light(item)
    if temp < cold_c:
        if warm or item.category == "outerwear":
            score += 0.3
        if light:
            score -= 0.3
    elif temp > hot_c:
        if light:
            score += 0.25
        if warm:
            score -= 0.35
    elif not warm:
        score += 0.1
    if weather.condition in ("rainy", "stormy") and item.has_tag("waterproof", "water-resistant"):
        score += 0.2
    if weather.condition == "snowy":
        if warm:
            score += 0.1
        if light:
            score -= 0.2
    if weather.condition == "sunny" and item.has_tag("sun-protection"):
        score += 0.1
    return clamp(score)


class WeatherFitStrategy:
    name = "weather"

    def score(self, candidate: Candidate, ctx: ScoringContext) -> float:
        cfg = ctx.config
        weather = ctx.weather
        base = mean(item_weather_score(i, weather, cfg.cold_c, cfg.hot_c) for i in candidate.items)
        has_layer = any(i.category == "outerwear" or is_warm(i) for i in candidate.items)
        if weather.temperature < cfg.cold_c:
            base += 0.15 if has_layer else -0.15
        elif weather.temperature > cfg.hot_c and any(i.category == "outerwear" for i in candidate.items):
            base -= 0.15
        return clamp(base)
