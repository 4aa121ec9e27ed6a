from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator


class ConfidencePattern(BaseModel):
    item_combination: List[str]
    average_rating: float = Field(ge=0.0, le=5.0)
    context_factors: List[str] = Field(default_factory=list)


class StyleProfile(BaseModel):
    user_id: str
    preferred_colors: List[str] = Field(default_factory=list)
    preferred_styles: List[str] = Field(default_factory=list)
    occasion_preferences: Dict[str, float] = Field(default_factory=dict)
    confidence_patterns: List[ConfidencePattern] = Field(default_factory=list)
    confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("occasion_preferences")
    @classmethod
    def _weights_in_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for key, weight in v.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"occasion weight for {key!r} must be within 0..1")
        return v

    @classmethod
    def neutral(cls, user_id: str) -> "StyleProfile":
        return cls(user_id=user_id)

    @property
    def is_neutral(self) -> bool:
        return not (self.preferred_colors or self.preferred_styles or self.occasion_preferences)
