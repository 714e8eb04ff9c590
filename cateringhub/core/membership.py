"""
Provider membership resolution

A caller's role inside a provider is looked up from provider_members on every
request. Guards below operate on the resolved ProviderMembership and raise
403 with a message specific to the attempted action.
"""

import logging
from typing import Dict, Optional

from pydantic import BaseModel
from supabase import Client

from cateringhub.config.roles_config import (
    calculate_capabilities,
    normalize_role,
)
from cateringhub.core.errors import forbidden

logger = logging.getLogger(__name__)

NOT_A_MEMBER_MESSAGE = "You are not an active member of this provider organization"


class ProviderMembership(BaseModel):
    member_id: str
    provider_id: str
    user_id: str
    role: str
    status: str = "active"
    team_id: Optional[str] = None
    capabilities: Dict[str, bool] = {}

    def can(self, capability: str) -> bool:
        return self.capabilities.get(capability, False)


def resolve_membership(supabase: Client, provider_id: str, user_id: str) -> Optional[ProviderMembership]:
    """Return the caller's active membership in a provider, or None."""
    result = supabase.table("provider_members")\
        .select("id, provider_id, user_id, role, status, team_id")\
        .eq("provider_id", provider_id)\
        .eq("user_id", user_id)\
        .eq("status", "active")\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        return None

    row = result.data
    role = normalize_role(row.get("role"))
    if role is None:
        logger.warning(f"Member {row['id']} has unknown role {row.get('role')!r}")
        return None

    return ProviderMembership(
        member_id=row["id"],
        provider_id=row["provider_id"],
        user_id=row["user_id"],
        role=role,
        status=row.get("status") or "active",
        team_id=row.get("team_id"),
        capabilities=calculate_capabilities(role),
    )


def ensure_capability(membership: ProviderMembership, capability: str, message: Optional[str] = None) -> ProviderMembership:
    if not membership.can(capability):
        raise forbidden(message or f"Insufficient permissions. Required: {capability}")
    return membership
