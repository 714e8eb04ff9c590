from supabase import Client
from cateringhub.core.errors import internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.geocoding.service import Geocoder
from cateringhub.modules.profile import utils
from cateringhub.modules.profile.schemas import (
    ProfileUpdate, ProfileResponse, ServiceLocationInput, ServiceLocationResponse,
    SocialLinkInput, SocialLinkResponse, GalleryImageResponse,
    ProfileCompletenessResponse, ServiceCoverageResponse,
    ServiceAreaCircle, ServiceMapResponse
)
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "id, business_name, contact_person_name, mobile_number, email, description, tagline, "
    "logo_url, banner_image, featured_image_url, is_visible, max_service_radius, "
    "daily_capacity, advance_booking_days, available_days, social_media_links, updated_at"
)
LOCATION_FIELDS = (
    "province", "city", "barangay", "street_address", "postal_code", "is_primary",
    "landmark", "service_area_notes", "service_radius",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _provider_row(self, provider_id: str) -> Dict[str, Any]:
        result = self.supabase.table("providers")\
            .select(PROFILE_FIELDS)\
            .eq("id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Provider")
        return result.data

    def _locations(self, provider_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("service_locations")\
            .select("*")\
            .eq("provider_id", provider_id)\
            .order("is_primary", desc=True)\
            .execute()
        return result.data or []

    def _social_links(self, provider_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("provider_social_links")\
            .select("*")\
            .eq("provider_id", provider_id)\
            .order("platform")\
            .execute()
        return result.data or []

    def _gallery(self, provider_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("provider_gallery_images")\
            .select("*")\
            .eq("provider_id", provider_id)\
            .order("display_order")\
            .execute()
        return result.data or []

    def get_profile(self, membership: ProviderMembership) -> ProfileResponse:
        """Provider profile with locations, social links and gallery"""
        try:
            provider = self._provider_row(membership.provider_id)
            return ProfileResponse(
                **provider,
                service_locations=[ServiceLocationResponse(**r) for r in self._locations(membership.provider_id)],
                social_links=[SocialLinkResponse(**r) for r in self._social_links(membership.provider_id)],
                gallery_images=[GalleryImageResponse(**r) for r in self._gallery(membership.provider_id)],
                capabilities={
                    "can_edit_profile": membership.can("can_edit_profile"),
                    "can_manage_service_locations": membership.can("can_manage_service_locations"),
                },
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching profile of provider {membership.provider_id}: {e}")
            raise internal("Failed to fetch profile")

    def update_profile(self, membership: ProviderMembership, profile_data: ProfileUpdate) -> ProfileResponse:
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit the provider profile")
        try:
            update_data = profile_data.model_dump(exclude_unset=True, mode="json")
            if not update_data:
                raise invalid_input("No fields to update")
            if "business_name" in update_data:
                name = (update_data["business_name"] or "").strip()
                if not name:
                    raise invalid_input("Business name cannot be empty")
                update_data["business_name"] = name
            update_data["updated_at"] = _now()

            result = self.supabase.table("providers")\
                .update(update_data)\
                .eq("id", membership.provider_id)\
                .execute()
            if not result.data:
                raise not_found("Provider")

            logger.info(f"Profile of provider {membership.provider_id} updated: {sorted(update_data)}")
            return self.get_profile(membership)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile of provider {membership.provider_id}: {e}")
            raise internal("Failed to update profile. Please try again.")

    def save_service_locations(
        self, membership: ProviderMembership, locations: List[ServiceLocationInput]
    ) -> List[ServiceLocationResponse]:
        """Replace the provider's locations with `locations`.

        Rows whose id is missing from the payload are deleted, rows with a
        known id are updated, rows without id are inserted.
        """
        ensure_capability(
            membership, "can_manage_service_locations",
            "You do not have permission to edit service locations",
        )
        if not locations:
            raise invalid_input("At least one location is required")
        if sum(1 for loc in locations if loc.is_primary) != 1:
            raise invalid_input("Exactly one location must be marked as primary")
        for loc in locations:
            if not (loc.province.strip() and loc.city.strip() and loc.barangay.strip()):
                raise invalid_input("Province, city, and barangay are required for all locations")

        provider_id = membership.provider_id
        snapshot = None
        try:
            snapshot = self._locations(provider_id)
            existing_ids = {row["id"] for row in snapshot}
            incoming_ids = {loc.id for loc in locations if loc.id}
            unknown = incoming_ids - existing_ids
            if unknown:
                raise invalid_input("Some locations do not belong to this provider")

            to_delete = list(existing_ids - incoming_ids)
            if to_delete:
                self.supabase.table("service_locations")\
                    .delete()\
                    .in_("id", to_delete)\
                    .eq("provider_id", provider_id)\
                    .execute()

            # Clear primary first so the single-primary rule holds after every statement
            self.supabase.table("service_locations")\
                .update({"is_primary": False})\
                .eq("provider_id", provider_id)\
                .execute()

            now = _now()
            new_rows = []
            for loc in locations:
                values = loc.model_dump(include=set(LOCATION_FIELDS))
                for key in ("province", "city", "barangay"):
                    values[key] = values[key].strip()
                if loc.id:
                    self.supabase.table("service_locations")\
                        .update({**values, "updated_at": now})\
                        .eq("id", loc.id)\
                        .eq("provider_id", provider_id)\
                        .execute()
                else:
                    new_rows.append({**values, "provider_id": provider_id})
            if new_rows:
                self.supabase.table("service_locations").insert(new_rows).execute()

            logger.info(
                f"Service locations of provider {provider_id} saved: "
                f"{len(to_delete)} deleted, {len(incoming_ids)} updated, {len(new_rows)} added"
            )
            return [ServiceLocationResponse(**r) for r in self._locations(provider_id)]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving service locations of provider {provider_id}: {e}")
            if snapshot is not None:
                self._restore_locations(provider_id, snapshot)
            raise internal("Failed to save service locations")

    def _restore_locations(self, provider_id: str, snapshot: List[Dict[str, Any]]):
        """Put the location set back as it was before a failed save"""
        try:
            kept = {row["id"] for row in snapshot}
            added = [row["id"] for row in self._locations(provider_id) if row["id"] not in kept]
            if added:
                self.supabase.table("service_locations")\
                    .delete()\
                    .in_("id", added)\
                    .eq("provider_id", provider_id)\
                    .execute()
            if snapshot:
                self.supabase.table("service_locations").upsert(snapshot).execute()
            logger.info(f"Service locations of provider {provider_id} restored after a failed save")
        except Exception as e:
            logger.error(f"Could not restore service locations of provider {provider_id}: {e}")

    def delete_service_location(self, membership: ProviderMembership, location_id: str) -> bool:
        ensure_capability(
            membership, "can_manage_service_locations",
            "You do not have permission to delete service locations",
        )
        provider_id = membership.provider_id
        try:
            locations = self._locations(provider_id)
            target = next((row for row in locations if row["id"] == location_id), None)
            if target is None:
                raise not_found("Location")
            if len(locations) <= 1:
                raise invalid_input("Cannot delete the last location. At least one location is required.")

            self.supabase.table("service_locations")\
                .delete()\
                .eq("id", location_id)\
                .eq("provider_id", provider_id)\
                .execute()

            if target.get("is_primary"):
                # Promote the next location so the provider keeps a primary
                successor = next(row for row in locations if row["id"] != location_id)
                self.supabase.table("service_locations")\
                    .update({"is_primary": True})\
                    .eq("id", successor["id"])\
                    .execute()
            logger.info(f"Service location {location_id} deleted from provider {provider_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting service location {location_id}: {e}")
            raise internal("Failed to delete location")

    def set_primary_location(self, membership: ProviderMembership, location_id: str) -> List[ServiceLocationResponse]:
        ensure_capability(
            membership, "can_manage_service_locations",
            "You do not have permission to edit service locations",
        )
        provider_id = membership.provider_id
        try:
            locations = self._locations(provider_id)
            if not any(row["id"] == location_id for row in locations):
                raise not_found("Location")
            self.supabase.table("service_locations")\
                .update({"is_primary": False})\
                .eq("provider_id", provider_id)\
                .execute()
            self.supabase.table("service_locations")\
                .update({"is_primary": True, "updated_at": _now()})\
                .eq("id", location_id)\
                .eq("provider_id", provider_id)\
                .execute()
            return [ServiceLocationResponse(**r) for r in self._locations(provider_id)]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting primary location {location_id}: {e}")
            raise internal("Failed to set primary location")

    def save_social_links(self, membership: ProviderMembership, links: List[SocialLinkInput]) -> List[SocialLinkResponse]:
        """Replace the provider's social links; platforms left out are removed"""
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit social links")
        seen = set()
        for link in links:
            if link.platform in seen:
                raise invalid_input(f"Only one {link.platform} link is allowed")
            seen.add(link.platform)
            error = utils.validate_social_url(link.platform, link.url)
            if error:
                raise invalid_input(error, {"platform": link.platform})

        provider_id = membership.provider_id
        try:
            existing = {row["platform"]: row for row in self._social_links(provider_id)}

            to_delete = [row["id"] for platform, row in existing.items() if platform not in seen]
            if to_delete:
                self.supabase.table("provider_social_links")\
                    .delete()\
                    .in_("id", to_delete)\
                    .eq("provider_id", provider_id)\
                    .execute()

            now = _now()
            new_rows = []
            for link in links:
                url = link.url.strip()
                current = existing.get(link.platform)
                if current is None:
                    new_rows.append({"provider_id": provider_id, "platform": link.platform, "url": url})
                elif current.get("url") != url:
                    self.supabase.table("provider_social_links")\
                        .update({"url": url, "updated_at": now})\
                        .eq("id", current["id"])\
                        .execute()
            if new_rows:
                self.supabase.table("provider_social_links").insert(new_rows).execute()

            return [SocialLinkResponse(**r) for r in self._social_links(provider_id)]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving social links of provider {provider_id}: {e}")
            raise internal("Failed to save social links")

    def delete_social_link(self, membership: ProviderMembership, link_id: str) -> bool:
        ensure_capability(membership, "can_edit_profile", "You do not have permission to edit social links")
        try:
            result = self.supabase.table("provider_social_links")\
                .delete()\
                .eq("id", link_id)\
                .eq("provider_id", membership.provider_id)\
                .execute()
            if not result.data:
                raise not_found("Social link")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting social link {link_id}: {e}")
            raise internal("Failed to delete social link")

    def get_completeness(self, provider_id: str) -> ProfileCompletenessResponse:
        try:
            provider = self._provider_row(provider_id)
            provider["service_locations"] = self._locations(provider_id)
            provider["social_links"] = self._social_links(provider_id)
            return ProfileCompletenessResponse(**utils.compute_profile_completeness(provider))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error computing completeness of provider {provider_id}: {e}")
            raise internal("Failed to compute profile completeness")

    def get_coverage(self, provider_id: str, city: Optional[str] = None, radius_km: Optional[float] = None) -> ServiceCoverageResponse:
        """Cities within the service radius of a city (the primary location's by default)"""
        try:
            if city is None or radius_km is None:
                locations = self._locations(provider_id)
                primary = next((row for row in locations if row.get("is_primary")), locations[0] if locations else None)
                if city is None and primary:
                    city = primary.get("city")
                if radius_km is None:
                    radius_km = (primary or {}).get("service_radius") or self._provider_row(provider_id).get("max_service_radius")
            coverage = utils.service_coverage(city, radius_km)
            return ServiceCoverageResponse(**{**coverage, "center": list(coverage["center"])})
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error computing coverage of provider {provider_id}: {e}")
            raise internal("Failed to compute service coverage")

    async def get_service_map(self, provider_id: str, geocoder: Geocoder) -> ServiceMapResponse:
        """One coverage circle per service location.

        Locations the geocoder cannot resolve are drawn at the known city
        coordinates (or Manila) and flagged approximate.
        """
        try:
            locations = self._locations(provider_id)
            default_radius = self._provider_row(provider_id).get("max_service_radius")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading service map of provider {provider_id}: {e}")
            raise internal("Failed to load service map")

        areas = []
        for row in locations:
            coords = await geocoder.geocode_city(row.get("city") or "", row.get("province"))
            approximate = coords is None
            if coords is None:
                coords = utils.CITY_COORDINATES[utils.normalize_city_name(row.get("city"))]
            radius = row.get("service_radius") or default_radius or utils.DEFAULT_RADIUS_KM
            label = ", ".join(p for p in (row.get("barangay"), row.get("city"), row.get("province")) if p)
            areas.append(ServiceAreaCircle(
                location_id=row["id"],
                label=label,
                is_primary=bool(row.get("is_primary")),
                lat=coords[0],
                lng=coords[1],
                approximate=approximate,
                radius_km=radius,
                radius_meters=radius * 1000,
            ))

        primary = next((a for a in areas if a.is_primary), areas[0] if areas else None)
        return ServiceMapResponse(areas=areas, center=[primary.lat, primary.lng] if primary else None)
