from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ItemCategory = Literal["top", "bottom", "dress", "shoes", "outerwear", "accessory"]


class UsageStats(BaseModel):
    total_wears: int = 0
    last_worn: Optional[datetime] = None
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)  # 0 means never rated
    compliments_received: int = 0
    cost_per_wear: Optional[float] = None

    @field_validator("last_worn")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class WardrobeItem(BaseModel):
    id: str
    user_id: str
    category: ItemCategory
    subcategory: Optional[str] = None
    name: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    brand: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    usage_stats: UsageStats = Field(default_factory=UsageStats)

    def has_tag(self, *tags: str) -> bool:
        own = {t.lower() for t in self.tags}
        return any(t in own for t in tags)
