from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPAuthorizationCredentials
from cateringhub.modules.auth.schemas import LoginRequest, TokenResponse, CurrentUserResponse
from cateringhub.modules.auth.service import AuthService
from cateringhub.core.dependencies import get_auth_service, get_current_user_id, security
from cateringhub.config.roles_config import get_capability_matrix
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Password sign-in; returns the Supabase session tokens"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    current_user: Dict = Depends(get_current_user_id),
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    service: AuthService = Depends(get_auth_service)
):
    """Drop the cached identity and revoke the refresh token"""
    service.logout(credentials.credentials)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Current user with active provider memberships and capabilities (for frontend UI)."""
    return service.describe_user(current_user)


@router.get("/roles")
async def get_roles(current_user: Dict = Depends(get_current_user_id)):
    """Role hierarchy and the capabilities each role grants."""
    return get_capability_matrix()
