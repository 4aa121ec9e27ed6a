from typing import Optional

from fastapi import APIRouter, Depends, Query

from ritual.container import Services, get_services
from ritual.schemas.recommendations import DailyRecommendations
from ritual.schemas.weather import Location

router = APIRouter(tags=["recommendations"])


def _location(location: Optional[str], lat: Optional[float], lon: Optional[float]) -> Optional[Location]:
    if lat is not None and lon is not None:
        return Location(label=location or f"{lat:.2f},{lon:.2f}", latitude=lat, longitude=lon)
    if location:
        return Location(label=location)
    return None


@router.get("/users/{user_id}/recommendations/daily", response_model=DailyRecommendations)
async def daily_recommendations(
    user_id: str,
    force: bool = False,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    location: Optional[str] = None,
    services: Services = Depends(get_services),
):
    return await services.engine.generate_daily_recommendations(
        user_id, location=_location(location, lat, lon), force=force
    )
