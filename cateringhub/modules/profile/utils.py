"""
Profile helpers: social link URL rules, profile completeness and the
service-radius coverage estimate over a fixed table of Philippine cities.
"""

import math
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

SOCIAL_PLATFORMS = ["facebook", "instagram", "website", "tiktok"]

_PLATFORM_HOSTS = {
    "facebook": ("facebook.com", "fb.com"),
    "instagram": ("instagram.com",),
    "tiktok": ("tiktok.com",),
}
_INSTAGRAM_PATH = re.compile(r"^/[A-Za-z0-9._-]+/?$")
_TIKTOK_PATH = re.compile(r"^/@[\w.-]+/?$")


def validate_social_url(platform: str, url: str) -> Optional[str]:
    """Return an error message for a bad link, or None when the URL is acceptable."""
    if platform not in SOCIAL_PLATFORMS:
        return f"Unsupported platform: {platform}"
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return "Invalid URL"
    if parsed.scheme != "https" or not parsed.hostname:
        return "URL must start with https://"
    if platform == "website":
        return None

    host = parsed.hostname.lower()
    if host.startswith("www.") or host.startswith("m."):
        host = host.split(".", 1)[1]
    if host not in _PLATFORM_HOSTS[platform]:
        return f"URL must be a {platform} link"

    path = parsed.path or ""
    if platform == "facebook" and path in ("", "/"):
        return "Facebook URL must point to a page or profile"
    if platform == "instagram" and not _INSTAGRAM_PATH.match(path):
        return "Instagram URL must point to a profile, e.g. https://instagram.com/yourbusiness"
    if platform == "tiktok" and not _TIKTOK_PATH.match(path):
        return "TikTok URL must point to a profile, e.g. https://tiktok.com/@yourbusiness"
    return None


def _filled_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


# (field, label, section id, check)
_COMPLETENESS_CHECKS = [
    ("logo_url", "Add logo image", "branding-section", lambda p: bool(p.get("logo_url"))),
    ("banner_image", "Add banner image", "branding-section", lambda p: bool(p.get("banner_image"))),
    ("description", "Add business description", "basic-info-section", lambda p: _filled_text(p.get("description"))),
    ("tagline", "Add tagline", "basic-info-section", lambda p: _filled_text(p.get("tagline"))),
    ("service_locations", "Add at least one service location", "service-locations-section",
     lambda p: bool(p.get("service_locations"))),
    ("social_links", "Add social media links", "social-links-section", lambda p: bool(p.get("social_links"))),
    ("max_service_radius", "Set service radius", "availability-section",
     lambda p: p.get("max_service_radius") is not None),
    ("is_visible", "Set profile visibility", "availability-section", lambda p: p.get("is_visible") is not None),
    ("daily_capacity", "Set daily capacity", "availability-section", lambda p: p.get("daily_capacity") is not None),
    ("advance_booking_days", "Set advance booking days", "availability-section",
     lambda p: p.get("advance_booking_days") is not None),
    ("available_days", "Select available days", "availability-section", lambda p: bool(p.get("available_days"))),
]


def completeness_variant(percentage: int) -> str:
    if percentage < 50:
        return "destructive"
    if percentage < 80:
        return "default"
    return "secondary"


def compute_profile_completeness(profile: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    total = len(_COMPLETENESS_CHECKS)
    if not profile:
        return {"percentage": 0, "completed": 0, "total": total, "missing_items": [], "variant": "destructive"}

    missing = []
    completed = 0
    for field, label, section_id, check in _COMPLETENESS_CHECKS:
        if check(profile):
            completed += 1
        else:
            missing.append({"field": field, "label": label, "section_id": section_id})

    # Half-up rounding, so 5.5/11 style ties do not round to even
    percentage = int(math.floor(completed / total * 100 + 0.5))
    return {
        "percentage": percentage,
        "completed": completed,
        "total": total,
        "missing_items": missing,
        "variant": completeness_variant(percentage),
    }


CITY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "MANILA": (14.5995, 120.9842),
    "QUEZON CITY": (14.676, 121.0437),
    "MAKATI": (14.5547, 121.0244),
    "PASIG": (14.5764, 121.0851),
    "TAGUIG": (14.5176, 121.0509),
    "CALOOCAN": (14.6488, 120.983),
    "MANDALUYONG": (14.5794, 121.0359),
    "SAN JUAN": (14.6019, 121.0355),
    "PASAY": (14.5378, 121.0014),
    "PARAÑAQUE": (14.4793, 121.0198),
    "LAS PIÑAS": (14.4453, 121.012),
    "MUNTINLUPA": (14.3811, 121.0437),
    "MARIKINA": (14.6507, 121.1029),
    "VALENZUELA": (14.6989, 120.983),
    "MALABON": (14.662, 120.957),
    "NAVOTAS": (14.6618, 120.9402),
    "PATEROS": (14.5436, 121.0669),
    "CEBU": (10.3157, 123.8854),
    "DAVAO": (7.1907, 125.4553),
    "ANTIPOLO": (14.5863, 121.176),
    "BACOOR": (14.459, 120.945),
    "CAVITE": (14.4791, 120.897),
    "IMUS": (14.4297, 120.9367),
    "DASMARIÑAS": (14.3294, 120.9366),
    "GENERAL TRIAS": (14.3869, 120.8811),
    "BIÑAN": (14.3369, 121.0806),
    "SANTA ROSA": (14.3123, 121.1114),
    "SAN PEDRO": (14.3583, 121.0167),
    "CABUYAO": (14.2789, 121.1253),
    "CALAMBA": (14.2117, 121.1653),
    # Batangas
    "TANAUAN": (14.0858, 121.1503),
    "LIPA": (13.9411, 121.1624),
    "BATANGAS": (13.7565, 121.0583),
    # Leyte
    "BARUGO": (11.3002, 124.7327),
    "TACLOBAN": (11.2447, 125.0047),
    "ORMOC": (11.0059, 124.6074),
}

FALLBACK_CITY = "MANILA"
DEFAULT_RADIUS_KM = 10.0
EARTH_RADIUS_KM = 6371.0


def normalize_city_name(city: Optional[str]) -> str:
    """Uppercase city key present in CITY_COORDINATES, MANILA when unknown."""
    if not city:
        return FALLBACK_CITY
    name = city.strip().upper()
    if name in CITY_COORDINATES:
        return name
    # "Cebu City", "City of Makati"
    if name.endswith(" CITY"):
        name = name[: -len(" CITY")].strip()
    elif name.startswith("CITY OF "):
        name = name[len("CITY OF "):].strip()
    return name if name in CITY_COORDINATES else FALLBACK_CITY


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_covered_cities(center_city: str, radius_km: float) -> List[str]:
    center = CITY_COORDINATES.get(center_city)
    if not center or not radius_km or radius_km <= 0:
        return []
    covered = [
        name for name, (lat, lon) in CITY_COORDINATES.items()
        if haversine_km(center[0], center[1], lat, lon) <= radius_km
    ]
    return sorted(covered)


def service_coverage(city: Optional[str], radius_km: Optional[float]) -> Dict[str, Any]:
    map_city = normalize_city_name(city)
    radius = radius_km if radius_km and radius_km > 0 else DEFAULT_RADIUS_KM
    return {
        "map_city_name": map_city,
        "center": CITY_COORDINATES[map_city],
        "radius_km": radius,
        "covered_cities": calculate_covered_cities(map_city, radius),
    }
