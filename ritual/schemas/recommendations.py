from datetime import date, datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from ritual.schemas.wardrobe import WardrobeItem
from ritual.schemas.weather import WeatherContext


class QuickAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["wear", "save", "share"]
    label: str
    icon: str


DEFAULT_QUICK_ACTIONS: tuple[QuickAction, ...] = (
    QuickAction(type="wear", label="Wear This", icon="checkmark-circle"),
    QuickAction(type="save", label="Save for Later", icon="bookmark"),
    QuickAction(type="share", label="Share", icon="share"),
)


class OutfitRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    daily_recommendation_id: str
    item_ids: List[str]
    items: List[WardrobeItem] = Field(default_factory=list)
    confidence_score: float = Field(ge=0.0, le=1.0)
    confidence_note: str
    reasoning: List[str] = Field(default_factory=list)
    quick_actions: List[QuickAction] = Field(default_factory=lambda: list(DEFAULT_QUICK_ACTIONS))
    is_quick_option: bool = False
    created_at: datetime


class DailyRecommendations(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    date: date
    recommendations: List[OutfitRecommendation] = Field(default_factory=list)
    weather_context: WeatherContext
    generated_at: datetime
    degraded_sources: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.recommendations
