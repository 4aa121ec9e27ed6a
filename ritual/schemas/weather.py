from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

WeatherCondition = Literal["sunny", "cloudy", "rainy", "snowy", "windy", "stormy"]


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def cache_suffix(self) -> str:
        if self.latitude is not None and self.longitude is not None:
            return f"{self.latitude:.2f},{self.longitude:.2f}"
        return self.label.strip().lower()

    @property
    def southern_hemisphere(self) -> bool:
        return self.latitude is not None and self.latitude < 0


class WeatherContext(BaseModel):
    """Conditions at observation time. Temperatures are Celsius, wind km/h."""

    model_config = ConfigDict(frozen=True)

    temperature: float
    condition: WeatherCondition
    humidity: float = 50.0
    wind_speed: float = 0.0
    location: str
    timestamp: datetime
