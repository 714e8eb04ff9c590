"""
Provider Roles and Capabilities Configuration
Defines the role hierarchy inside a provider organization and the capability
matrix derived from it. Capabilities are computed per request from the
caller's current role; nothing here is persisted.
"""

from typing import Dict, Optional

# Lower rank = more privileged
ROLE_HIERARCHY: Dict[str, int] = {
    "owner": 1,
    "admin": 2,
    "supervisor": 3,
    "staff": 4,
    "viewer": 5,
}

# Legacy role names still present in older provider_members rows
ROLE_ALIASES: Dict[str, str] = {
    "manager": "supervisor",
}

ROLE_DESCRIPTIONS: Dict[str, str] = {
    "owner": "Full control of the provider organization, including billing and ownership transfer",
    "admin": "Manages members, settings, service locations and analytics",
    "supervisor": "Manages bookings, teams, shifts and worker profiles",
    "staff": "Works assigned bookings and records attendance",
    "viewer": "Read-only access to the dashboard",
}

# Capability -> least privileged role that still holds it
CAPABILITIES: Dict[str, str] = {
    # Organization management
    "can_invite_members": "admin",
    "can_remove_members": "admin",
    "can_manage_roles": "admin",
    "can_view_analytics": "admin",
    "can_manage_billing": "admin",
    "can_manage_payouts": "admin",
    "can_edit_provider_settings": "admin",
    "can_manage_service_locations": "admin",
    "can_create_teams": "admin",
    # Day-to-day operations
    "can_view_all_bookings": "supervisor",
    "can_edit_all_bookings": "supervisor",
    "can_assign_bookings": "supervisor",
    "can_manage_shifts": "supervisor",
    "can_manage_teams": "supervisor",
    "can_manage_workers": "supervisor",
    "can_edit_profile": "supervisor",
    # Every active member
    "can_view_bookings": "viewer",
}


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Map legacy role names onto the current hierarchy. Unknown roles return None."""
    if not role:
        return None
    role = role.strip().lower()
    role = ROLE_ALIASES.get(role, role)
    return role if role in ROLE_HIERARCHY else None


def get_role_rank(role: Optional[str]) -> int:
    normalized = normalize_role(role)
    if normalized is None:
        return len(ROLE_HIERARCHY) + 1
    return ROLE_HIERARCHY[normalized]


def has_higher_or_equal_role(role: Optional[str], required_role: str) -> bool:
    """True if `role` is at least as privileged as `required_role`."""
    if normalize_role(role) is None:
        return False
    return get_role_rank(role) <= get_role_rank(required_role)


def has_higher_role(role: Optional[str], other_role: Optional[str]) -> bool:
    if normalize_role(role) is None:
        return False
    return get_role_rank(role) < get_role_rank(other_role)


def calculate_capabilities(role: Optional[str]) -> Dict[str, bool]:
    return {
        name: has_higher_or_equal_role(role, min_role)
        for name, min_role in CAPABILITIES.items()
    }


def get_capability_matrix():
    """
    Returns the roles and what each of them may do
    Format: {
        "roles": [{"name": "owner", "rank": 1, "description": "...", "capabilities": [...]}, ...],
        "capabilities": [{"name": "can_view_analytics", "min_role": "admin"}, ...]
    }
    """
    roles = []
    for role, rank in sorted(ROLE_HIERARCHY.items(), key=lambda item: item[1]):
        granted = calculate_capabilities(role)
        roles.append({
            "name": role,
            "rank": rank,
            "description": ROLE_DESCRIPTIONS[role],
            "capabilities": sorted(name for name, allowed in granted.items() if allowed),
        })

    capabilities = [
        {"name": name, "min_role": min_role}
        for name, min_role in CAPABILITIES.items()
    ]

    return {
        "roles": roles,
        "capabilities": capabilities,
    }
