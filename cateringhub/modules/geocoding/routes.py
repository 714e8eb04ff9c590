from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from cateringhub.core.dependencies import get_current_user_id
from cateringhub.modules.geocoding.service import Geocoder, get_geocoder
from typing import Dict, Optional

router = APIRouter(prefix="/geocoding", tags=["geocoding"])


class CityGeocodeResponse(BaseModel):
    city: str
    province: Optional[str] = None
    found: bool
    lat: Optional[float] = None
    lng: Optional[float] = None


@router.get("/city", response_model=CityGeocodeResponse)
async def geocode_city(
    city: str = Query(..., min_length=1),
    province: Optional[str] = None,
    current_user: Dict = Depends(get_current_user_id),
    geocoder: Geocoder = Depends(get_geocoder)
):
    """Coordinates of a city, cached by city+province and throttled upstream"""
    coords = await geocoder.geocode_city(city, province)
    if coords is None:
        return CityGeocodeResponse(city=city, province=province, found=False)
    return CityGeocodeResponse(city=city, province=province, found=True, lat=coords[0], lng=coords[1])
