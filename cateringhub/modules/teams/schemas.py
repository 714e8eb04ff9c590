from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional, List
from datetime import date, datetime

TeamStatus = Literal["active", "inactive", "archived"]


class TeamCreate(BaseModel):
    service_location_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    daily_capacity: Optional[int] = Field(None, ge=0)
    max_concurrent_events: Optional[int] = Field(None, ge=0)
    supervisor_member_id: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    daily_capacity: Optional[int] = Field(None, ge=0)
    max_concurrent_events: Optional[int] = Field(None, ge=0)
    status: Optional[TeamStatus] = None


class ServiceLocationSummary(BaseModel):
    id: str
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    is_primary: bool = False


class TeamResponse(BaseModel):
    id: str
    provider_id: str
    service_location_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    daily_capacity: Optional[int] = None
    max_concurrent_events: Optional[int] = None
    status: str
    member_count: int = 0
    service_location: Optional[ServiceLocationSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamMemberEntry(BaseModel):
    id: str
    name: str
    role: Optional[str] = None
    status: Optional[str] = None
    member_type: Literal["staff", "worker"]
    email: Optional[str] = None
    phone: Optional[str] = None
    hourly_rate: Optional[float] = None
    tags: List[str] = []


class TeamMemberCounts(BaseModel):
    total: int
    staff: int
    workers: int


class TeamMembersResponse(BaseModel):
    team_id: str
    team_name: str
    members: List[TeamMemberEntry]
    counts: TeamMemberCounts


class TeamDetailResponse(TeamResponse):
    members: List[dict] = []


class TeamCapacityResponse(BaseModel):
    team_id: str
    team_name: Optional[str] = None
    event_date: date
    daily_capacity: Optional[int] = None
    max_concurrent_events: Optional[int] = None
    bookings_on_date: int = 0
    remaining_capacity: Optional[int] = None
    is_at_capacity: bool = False
