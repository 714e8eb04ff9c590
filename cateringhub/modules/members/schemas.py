from pydantic import BaseModel
from typing import Literal, Optional, List
from datetime import datetime


class MemberResponse(BaseModel):
    id: str
    provider_id: str
    user_id: str
    role: str
    status: str
    team_id: Optional[str] = None
    full_name: str = "Unknown User"
    email: str = ""
    avatar_url: Optional[str] = None
    joined_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberListResponse(BaseModel):
    data: List[MemberResponse]
    total: int


class MemberTeamUpdate(BaseModel):
    team_id: Optional[str] = None


class MemberRoleUpdate(BaseModel):
    role: str


class MemberStatusUpdate(BaseModel):
    status: Literal["active", "suspended"]


class MemberChangeResponse(BaseModel):
    data: MemberResponse
    message: str


class MemberRemovedResponse(BaseModel):
    removed_member_id: str
    message: str
