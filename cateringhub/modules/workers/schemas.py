from pydantic import BaseModel, Field, field_validator
from typing import Any, Literal, Optional, List
from datetime import datetime

WorkerStatus = Literal["active", "inactive"]


class WorkerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: Optional[str] = None
    team_id: Optional[str] = None
    tags: List[str] = []
    certifications: List[str] = []
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: Optional[Any] = None
    notes: Optional[str] = None
    status: WorkerStatus = "active"

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class WorkerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    team_id: Optional[str] = None
    tags: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    availability: Optional[Any] = None
    notes: Optional[str] = None
    status: Optional[WorkerStatus] = None


class WorkerResponse(BaseModel):
    id: str
    provider_id: str
    team_id: Optional[str] = None
    name: str
    phone: Optional[str] = None
    role: Optional[str] = None
    tags: List[str] = []
    certifications: List[str] = []
    hourly_rate: Optional[float] = None
    availability: Optional[Any] = None
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
