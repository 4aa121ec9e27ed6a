from ritual.recs.strategies.base import Strategy
from ritual.recs.strategies.style_affinity import StyleAffinityStrategy
from ritual.recs.strategies.rating import ItemRatingStrategy
from ritual.recs.strategies.recent_wear import RecentWearStrategy
from ritual.recs.strategies.weather import WeatherFitStrategy

__all__ = [
    "Strategy",
    "StyleAffinityStrategy",
    "ItemRatingStrategy",
    "RecentWearStrategy",
    "WeatherFitStrategy",
]
