"""
tests/test_profile_utils.py
Tests for social link validation, profile completeness and service coverage.
"""

import pytest

from cateringhub.modules.profile import utils


# ── Social links ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("platform,url", [
    ("facebook", "https://www.facebook.com/lutongbahay"),
    ("facebook", "https://m.facebook.com/profile.php?id=123"),
    ("instagram", "https://instagram.com/lutong.bahay"),
    ("tiktok", "https://www.tiktok.com/@lutongbahay"),
    ("website", "https://lutongbahay.ph/menu"),
])
def test_valid_social_urls(platform, url):
    assert utils.validate_social_url(platform, url) is None


@pytest.mark.parametrize("platform,url", [
    ("facebook", "http://facebook.com/lutongbahay"),
    ("facebook", "https://facebook.com/"),
    ("instagram", "https://instagram.com/p/abc/def"),
    ("instagram", "https://facebook.com/lutongbahay"),
    ("tiktok", "https://tiktok.com/lutongbahay"),
    ("website", "lutongbahay.ph"),
    ("myspace", "https://myspace.com/x"),
])
def test_invalid_social_urls(platform, url):
    assert utils.validate_social_url(platform, url) is not None


# ── Completeness ───────────────────────────────────────────────────────────────

def test_empty_profile_is_zero_percent():
    result = utils.compute_profile_completeness(None)
    assert result["percentage"] == 0
    assert result["total"] == 11
    assert result["variant"] == "destructive"


def test_partial_profile_lists_missing_sections():
    profile = {
        "logo_url": "https://cdn/logo.png",
        "description": "Home-style Filipino catering",
        "tagline": "  ",
        "service_locations": [{"id": "loc-1"}],
        "max_service_radius": 25,
        "is_visible": True,
        "daily_capacity": 3,
        "advance_booking_days": 7,
        "available_days": ["saturday"],
    }
    result = utils.compute_profile_completeness(profile)
    assert result["completed"] == 8
    # 8 / 11 = 72.7%
    assert result["percentage"] == 73
    assert result["variant"] == "default"
    missing = {item["field"] for item in result["missing_items"]}
    assert missing == {"banner_image", "tagline", "social_links"}


@pytest.mark.parametrize("percentage,variant", [(0, "destructive"), (49, "destructive"), (50, "default"), (79, "default"), (80, "secondary")])
def test_completeness_variant_thresholds(percentage, variant):
    assert utils.completeness_variant(percentage) == variant


# ── Coverage ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("city,expected", [
    ("Cebu City", "CEBU"),
    ("City of Makati", "MAKATI"),
    ("quezon city", "QUEZON CITY"),
    ("Atlantis", "MANILA"),
    (None, "MANILA"),
])
def test_normalize_city_name(city, expected):
    assert utils.normalize_city_name(city) == expected


def test_haversine_manila_to_cebu():
    manila = utils.CITY_COORDINATES["MANILA"]
    cebu = utils.CITY_COORDINATES["CEBU"]
    assert 560 < utils.haversine_km(*manila, *cebu) < 580


def test_covered_cities_are_sorted_and_include_center():
    covered = utils.calculate_covered_cities("MAKATI", 5)
    assert covered == sorted(covered)
    assert "MAKATI" in covered
    assert "CEBU" not in covered


def test_coverage_defaults_radius_and_city():
    coverage = utils.service_coverage("Atlantis", 0)
    assert coverage["map_city_name"] == "MANILA"
    assert coverage["radius_km"] == utils.DEFAULT_RADIUS_KM
    assert coverage["center"] == utils.CITY_COORDINATES["MANILA"]
    assert "MANILA" in coverage["covered_cities"]
