from pydantic import BaseModel, EmailStr
from typing import Dict, List, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    user_id: str
    email: str


class MembershipSummary(BaseModel):
    member_id: str
    provider_id: str
    business_name: Optional[str] = None
    role: str
    team_id: Optional[str] = None
    capabilities: Dict[str, bool]


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    user_metadata: Dict = {}
    memberships: List[MembershipSummary] = []
