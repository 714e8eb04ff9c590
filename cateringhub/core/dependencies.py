"""
Core dependencies for route protection and membership checking
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.auth.service import AuthService
from cateringhub.core.errors import forbidden
from cateringhub.core.membership import (
    NOT_A_MEMBER_MESSAGE,
    ProviderMembership,
    ensure_capability,
    resolve_membership,
)
from supabase import Client
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials if credentials else None
    return auth_service.get_current_user(token)


def get_current_membership(
    provider_id: str,
    request: Request,
    user_data: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> ProviderMembership:
    """Resolve the caller's active membership for the provider in the path.

    Looked up once per request and kept on request.state only for the rest of
    that request; role changes take effect on the very next call.
    """
    cached = getattr(request.state, "membership", None)
    if cached is not None and cached.provider_id == provider_id:
        return cached
    membership = resolve_membership(supabase, provider_id, user_data["id"])
    if membership is None:
        logger.info(f"User {user_data['id']} denied access to provider {provider_id}")
        raise forbidden(NOT_A_MEMBER_MESSAGE)
    request.state.membership = membership
    return membership


def require_capability(capability: str, message: Optional[str] = None):
    """Factory function to create capability check dependency"""
    def check_capability(
        membership: ProviderMembership = Depends(get_current_membership)
    ) -> ProviderMembership:
        return ensure_capability(membership, capability, message)
    return check_capability
