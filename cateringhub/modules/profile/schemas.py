from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, Literal, Optional, List
from datetime import datetime

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
SocialPlatform = Literal["facebook", "instagram", "website", "tiktok"]


class ProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1)
    contact_person_name: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[EmailStr] = None
    description: Optional[str] = None
    tagline: Optional[str] = Field(None, max_length=160)
    is_visible: Optional[bool] = None
    max_service_radius: Optional[float] = Field(None, gt=0)
    daily_capacity: Optional[int] = Field(None, ge=0)
    advance_booking_days: Optional[int] = Field(None, ge=0)
    available_days: Optional[List[Weekday]] = None
    social_media_links: Optional[Dict[str, Any]] = None

    @field_validator("available_days", mode="before")
    @classmethod
    def lower_days(cls, v):
        if isinstance(v, list):
            return [d.lower() if isinstance(d, str) else d for d in v]
        return v


class ServiceLocationInput(BaseModel):
    id: Optional[str] = None
    province: str
    city: str
    barangay: str
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    is_primary: bool = False
    landmark: Optional[str] = None
    service_area_notes: Optional[str] = None
    service_radius: Optional[float] = Field(None, gt=0)


class ServiceLocationResponse(BaseModel):
    id: str
    provider_id: str
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    is_primary: bool = False
    landmark: Optional[str] = None
    service_area_notes: Optional[str] = None
    service_radius: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceLocationsSave(BaseModel):
    locations: List[ServiceLocationInput]


class SocialLinkInput(BaseModel):
    platform: SocialPlatform
    url: str


class SocialLinksSave(BaseModel):
    links: List[SocialLinkInput]


class SocialLinkResponse(BaseModel):
    id: str
    provider_id: str
    platform: str
    url: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GalleryImageResponse(BaseModel):
    id: str
    provider_id: str
    image_url: str
    storage_path: Optional[str] = None
    caption: Optional[str] = None
    display_order: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GalleryReorder(BaseModel):
    image_ids: List[str] = Field(..., min_length=1)


class FeaturedImageUpdate(BaseModel):
    image_id: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    business_name: Optional[str] = None
    contact_person_name: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    tagline: Optional[str] = None
    logo_url: Optional[str] = None
    banner_image: Optional[str] = None
    featured_image_url: Optional[str] = None
    is_visible: Optional[bool] = None
    max_service_radius: Optional[float] = None
    daily_capacity: Optional[int] = None
    advance_booking_days: Optional[int] = None
    available_days: Optional[List[str]] = None
    social_media_links: Optional[Dict[str, Any]] = None
    service_locations: List[ServiceLocationResponse] = []
    social_links: List[SocialLinkResponse] = []
    gallery_images: List[GalleryImageResponse] = []
    capabilities: Dict[str, bool] = {}
    updated_at: Optional[datetime] = None


class MissingItem(BaseModel):
    field: str
    label: str
    section_id: Optional[str] = None


class ProfileCompletenessResponse(BaseModel):
    percentage: int
    completed: int
    total: int
    missing_items: List[MissingItem]
    variant: Literal["destructive", "default", "secondary"]


class ServiceCoverageResponse(BaseModel):
    map_city_name: str
    center: List[float]
    radius_km: float
    covered_cities: List[str]


class ServiceAreaCircle(BaseModel):
    location_id: str
    label: str
    is_primary: bool
    lat: float
    lng: float
    approximate: bool
    radius_km: float
    radius_meters: float


class ServiceMapResponse(BaseModel):
    areas: List[ServiceAreaCircle]
    center: Optional[List[float]] = None
