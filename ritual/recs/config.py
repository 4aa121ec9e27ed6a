from dataclasses import dataclass


@dataclass(frozen=True)
class RecsConfig:
    min_results: int = 3
    max_results: int = 5
    per_category_limit: int = 4
    # scoring weights, should sum to 1
    weight_style: float = 0.35
    weight_rating: float = 0.25
    weight_recency: float = 0.2
    weight_weather: float = 0.2
    quick_option_days: int = 14
    neglected_days: int = 30
    # temperature thresholds, Celsius
    heavy_outerwear_max_c: float = 20.0
    open_shoes_min_c: float = 15.0
    summer_pieces_min_c: float = 8.0
    cold_c: float = 10.0
    hot_c: float = 27.0
