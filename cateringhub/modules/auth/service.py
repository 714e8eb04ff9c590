import hashlib
import logging
import time
from supabase import Client
from cateringhub.config.roles_config import calculate_capabilities, normalize_role
from cateringhub.core.errors import unauthorized, internal
from cateringhub.modules.auth.schemas import (
    LoginRequest, TokenResponse, CurrentUserResponse, MembershipSummary
)
from fastapi import HTTPException
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

# sha256(token) -> (identity, expires_at). Identity only: provider roles are
# always read fresh from provider_members.
_identity_cache: Dict[str, tuple] = {}
IDENTITY_TTL_SECONDS = 60
IDENTITY_CACHE_LIMIT = 500

_CREDENTIAL_ERROR_HINTS = ("invalid", "credentials", "email not confirmed")
_TOKEN_ERROR_HINTS = ("jwt", "expired", "invalid", "malformed")


def clear_auth_cache():
    _identity_cache.clear()


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_identity(key: str) -> Optional[Dict[str, Any]]:
    entry = _identity_cache.get(key)
    if entry is None:
        return None
    identity, expires_at = entry
    if time.monotonic() >= expires_at:
        _identity_cache.pop(key, None)
        return None
    return identity


def _remember_identity(key: str, identity: Dict[str, Any]):
    if len(_identity_cache) >= IDENTITY_CACHE_LIMIT:
        return
    _identity_cache[key] = (identity, time.monotonic() + IDENTITY_TTL_SECONDS)


def _identity_of(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def _mentions(message: str, hints) -> bool:
    lowered = message.lower()
    return any(hint in lowered for hint in hints)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Password sign-in through Supabase Auth; the session tokens are handed to the client"""
        try:
            result = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            if _mentions(str(e), _CREDENTIAL_ERROR_HINTS):
                logger.info(f"Rejected sign-in for {login_data.email}")
                raise unauthorized("Invalid email or password")
            logger.error(f"Login failed for {login_data.email}: {e}")
            raise internal(f"Login failed: {e}")

        session = getattr(result, "session", None)
        if not getattr(result, "user", None) or not session:
            raise unauthorized("Invalid email or password")

        return TokenResponse(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            user_id=result.user.id,
            email=result.user.email or login_data.email,
        )

    def get_current_user(self, token: Optional[str]) -> Dict[str, Any]:
        """Identity behind a bearer token, verified with Supabase Auth and cached briefly"""
        if not token:
            raise unauthorized("You must be logged in")

        key = _token_key(token)
        identity = _cached_identity(key)
        if identity is not None:
            return identity

        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            if _mentions(str(e), _TOKEN_ERROR_HINTS):
                raise unauthorized("Invalid or expired token")
            logger.warning(f"Token verification failed: {e}")
            raise unauthorized("Authentication failed")

        if not response or not response.user:
            raise unauthorized("Invalid or expired token")
        identity = _identity_of(response.user)
        _remember_identity(key, identity)
        return identity

    def logout(self, token: str) -> bool:
        """Forget the cached identity and revoke the refresh token"""
        _identity_cache.pop(_token_key(token), None)
        try:
            # Access tokens are stateless JWTs and stay valid until they expire
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False

    def get_memberships(self, user_id: str) -> List[MembershipSummary]:
        """Active provider memberships of a user, with capabilities per provider"""
        try:
            result = self.supabase.table("provider_members")\
                .select("id, provider_id, role, team_id")\
                .eq("user_id", user_id)\
                .eq("status", "active")\
                .execute()
            rows = result.data or []
            if not rows:
                return []

            providers_result = self.supabase.table("providers")\
                .select("id, business_name")\
                .in_("id", list({r["provider_id"] for r in rows}))\
                .execute()
            names = {p["id"]: p.get("business_name") for p in (providers_result.data or [])}

            memberships = []
            for row in rows:
                role = normalize_role(row.get("role"))
                if role is None:
                    continue
                memberships.append(MembershipSummary(
                    member_id=row["id"],
                    provider_id=row["provider_id"],
                    business_name=names.get(row["provider_id"]),
                    role=role,
                    team_id=row.get("team_id"),
                    capabilities=calculate_capabilities(role),
                ))
            return memberships
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading memberships for {user_id}: {e}")
            raise internal("Failed to load memberships")

    def describe_user(self, user_data: Dict[str, Any]) -> CurrentUserResponse:
        metadata = user_data.get("user_metadata") or {}
        return CurrentUserResponse(
            id=user_data["id"],
            email=user_data.get("email"),
            full_name=metadata.get("full_name"),
            user_metadata=metadata,
            memberships=self.get_memberships(user_data["id"]),
        )
