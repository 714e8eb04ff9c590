from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.profile.schemas import (
    ProfileUpdate, ProfileResponse, ServiceLocationsSave, ServiceLocationResponse,
    SocialLinksSave, SocialLinkResponse, GalleryImageResponse, GalleryReorder,
    FeaturedImageUpdate, ProfileCompletenessResponse, ServiceCoverageResponse,
    ServiceMapResponse
)
from cateringhub.modules.profile.service import ProfileService
from cateringhub.modules.profile.gallery import GalleryService
from cateringhub.modules.geocoding.service import Geocoder, get_geocoder
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/providers/{provider_id}/profile", tags=["profile"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_gallery_service(supabase: Client = Depends(get_supabase)) -> GalleryService:
    return GalleryService(supabase)


@router.get("", response_model=ProfileResponse)
async def get_profile(
    provider_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(membership)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    provider_id: str,
    profile_data: ProfileUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    """Update business info and availability (supervisor and above)"""
    return service.update_profile(membership, profile_data)


@router.put("/service-locations", response_model=List[ServiceLocationResponse])
async def save_service_locations(
    provider_id: str,
    payload: ServiceLocationsSave,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    """
    Replace the provider's service locations.
    Exactly one location must be primary; locations missing from the payload are deleted.
    """
    return service.save_service_locations(membership, payload.locations)


@router.delete("/service-locations/{location_id}")
async def delete_service_location(
    provider_id: str,
    location_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    service.delete_service_location(membership, location_id)
    return {"message": "Location deleted successfully"}


@router.post("/service-locations/{location_id}/primary", response_model=List[ServiceLocationResponse])
async def set_primary_location(
    provider_id: str,
    location_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    return service.set_primary_location(membership, location_id)


@router.put("/social-links", response_model=List[SocialLinkResponse])
async def save_social_links(
    provider_id: str,
    payload: SocialLinksSave,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    """Replace social links; one link per platform, https only"""
    return service.save_social_links(membership, payload.links)


@router.delete("/social-links/{link_id}")
async def delete_social_link(
    provider_id: str,
    link_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    service.delete_social_link(membership, link_id)
    return {"message": "Social link deleted successfully"}


@router.get("/gallery", response_model=List[GalleryImageResponse])
async def list_gallery(
    provider_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    gallery: GalleryService = Depends(get_gallery_service)
):
    return gallery.list_images(provider_id)


@router.post("/gallery", response_model=GalleryImageResponse, status_code=201)
async def upload_gallery_image(
    provider_id: str,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    membership: ProviderMembership = Depends(get_current_membership),
    gallery: GalleryService = Depends(get_gallery_service)
):
    """
    Upload a gallery image (JPEG, PNG or WebP, up to 5MB).
    The image is appended after the current last position.
    """
    return await gallery.upload_image(membership, file, caption)


@router.delete("/gallery/{image_id}")
async def delete_gallery_image(
    provider_id: str,
    image_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    gallery: GalleryService = Depends(get_gallery_service)
):
    gallery.delete_image(membership, image_id)
    return {"message": "Image deleted successfully"}


@router.put("/gallery/order", response_model=List[GalleryImageResponse])
async def reorder_gallery(
    provider_id: str,
    payload: GalleryReorder,
    membership: ProviderMembership = Depends(get_current_membership),
    gallery: GalleryService = Depends(get_gallery_service)
):
    return gallery.reorder(membership, payload.image_ids)


@router.put("/gallery/featured")
async def set_featured_image(
    provider_id: str,
    payload: FeaturedImageUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    gallery: GalleryService = Depends(get_gallery_service)
):
    featured_image_url = gallery.set_featured(membership, payload.image_id)
    return {"featured_image_url": featured_image_url}


@router.get("/completeness", response_model=ProfileCompletenessResponse)
async def get_completeness(
    provider_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    """Checklist of profile sections still to fill in"""
    return service.get_completeness(provider_id)


@router.get("/coverage", response_model=ServiceCoverageResponse)
async def get_coverage(
    provider_id: str,
    city: Optional[str] = None,
    radius_km: Optional[float] = Query(None, gt=0),
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service)
):
    """Known cities inside the service radius (primary location by default)"""
    return service.get_coverage(provider_id, city, radius_km)


@router.get("/service-map", response_model=ServiceMapResponse)
async def get_service_map(
    provider_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ProfileService = Depends(get_profile_service),
    geocoder: Geocoder = Depends(get_geocoder)
):
    """Coverage circles for every service location"""
    return await service.get_service_map(provider_id, geocoder)
