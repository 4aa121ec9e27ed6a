"""Current-conditions adapter with cached and seasonal fallbacks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from ritual.core.cache import MISS, cache_key
from ritual.core.config import settings
from ritual.core.errors import RetryExhausted
from ritual.schemas.weather import Location, WeatherCondition, WeatherContext
from ritual.sources.base import ResilientSource
from ritual.sources.types import SourceResult

logger = logging.getLogger("ritual.sources.weather")


class WeatherProvider(Protocol):
    async def fetch(self, location: Location) -> WeatherContext:
        ...


class WeatherUnavailable(Exception):
    pass


class _Condition(BaseModel):
    main: str = "Clouds"


class _Main(BaseModel):
    temp: float
    humidity: float = 50.0


class _Wind(BaseModel):
    speed: float = 0.0


class _CurrentResponse(BaseModel):
    name: Optional[str] = None
    main: _Main
    wind: _Wind = _Wind()
    weather: List[_Condition] = []


_CONDITION_MAP: dict[str, WeatherCondition] = {
    "clear": "sunny",
    "clouds": "cloudy",
    "rain": "rainy",
    "drizzle": "rainy",
    "snow": "snowy",
    "thunderstorm": "stormy",
    "squall": "windy",
    "tornado": "stormy",
}


class OpenWeatherProvider:
    """OpenWeather current-conditions lookup in metric units."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.WEATHER_API_KEY
        self.base_url = (base_url or settings.WEATHER_API_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.WEATHER_TIMEOUT_S
        self._client = client

    def _params(self, location: Location) -> dict:
        params = {"appid": self.api_key, "units": "metric"}
        if location.latitude is not None and location.longitude is not None:
            params.update(lat=location.latitude, lon=location.longitude)
        else:
            params["q"] = location.label
        return params

    async def fetch(self, location: Location) -> WeatherContext:
        if not self.api_key:
            raise WeatherUnavailable("missing weather api key")
        url = f"{self.base_url}/weather"
        if self._client is not None:
            resp = await self._client.get(url, params=self._params(location), timeout=self.timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                resp = await client.get(url, params=self._params(location))
        resp.raise_for_status()
        try:
            body = _CurrentResponse.model_validate(resp.json())
        except (ValidationError, ValueError) as e:
            raise WeatherUnavailable(f"unexpected weather payload: {e}") from e
        main = (body.weather[0].main if body.weather else "clouds").lower()
        return WeatherContext(
            temperature=body.main.temp,
            condition=_CONDITION_MAP.get(main, "cloudy"),
            humidity=body.main.humidity,
            wind_speed=round(body.wind.speed * 3.6, 1),
            location=location.label or body.name or "Unknown",
            timestamp=datetime.now(timezone.utc),
        )


class SeasonalWeatherProvider:
    """Seasonal estimate for deployments without a weather API key."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self.clock = clock or _utcnow

    async def fetch(self, location: Location) -> WeatherContext:
        return seasonal_default(location, self.clock())


# (month range, temperature C, condition) for the northern hemisphere
_SEASONS: tuple[tuple[tuple[int, ...], float, WeatherCondition], ...] = (
    ((12, 1, 2), 7.0, "cloudy"),
    ((3, 4, 5), 17.0, "sunny"),
    ((6, 7, 8), 27.0, "sunny"),
    ((9, 10, 11), 15.0, "cloudy"),
)


def seasonal_default(location: Location, now: datetime) -> WeatherContext:
    month = now.month
    if location.southern_hemisphere:
        month = (month + 5) % 12 + 1
    for months, temperature, condition in _SEASONS:
        if month in months:
            break
    return WeatherContext(
        temperature=temperature,
        condition=condition,
        humidity=50.0,
        wind_speed=8.0,
        location=location.label or "Unknown",
        timestamp=now,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WeatherSource(ResilientSource):
    service = "weather"

    def __init__(self, provider: WeatherProvider, cache, policy=None, *, clock: Callable[[], datetime] = _utcnow, **kwargs) -> None:
        super().__init__(cache, policy, **kwargs)
        self.provider = provider
        self.clock = clock

    @staticmethod
    def key(location: Location, user_id: Optional[str]) -> str:
        return cache_key("weather", user_id or "_", location.cache_suffix)

    async def fetch(self, location: Location, user_id: Optional[str] = None) -> SourceResult[WeatherContext]:
        key = self.key(location, user_id)
        return await self._resolve(key, lambda: self.provider.fetch(location), "fetch", user_id, settings.WEATHER_TTL_S, location)

    async def _fallback(self, key: str, location: Location, error: RetryExhausted) -> SourceResult[WeatherContext]:
        cached = await self.cache.get(key)
        if cached is not MISS:
            try:
                weather = WeatherContext.model_validate(cached)
            except ValidationError:
                await self.cache.invalidate(key)
            else:
                logger.info("weather: serving cached reading location=%s reason=%r", location.label, error.last_error)
                return SourceResult.degraded(weather, "cached")
        logger.info("weather: serving seasonal default location=%s reason=%r", location.label, error.last_error)
        return SourceResult.degraded(seasonal_default(location, self.clock()), "seasonal_default")
