from pydantic import BaseModel, model_validator
from typing import Literal, Optional, List
from datetime import datetime

ShiftStatus = Literal["scheduled", "checked_in", "checked_out", "cancelled"]


class ShiftCreate(BaseModel):
    user_id: Optional[str] = None
    worker_profile_id: Optional[str] = None
    role: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_assignee_and_window(self):
        if bool(self.user_id) == bool(self.worker_profile_id):
            raise ValueError("Exactly one of user_id or worker_profile_id must be provided")
        if self.scheduled_start and self.scheduled_end and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self


class BulkAssignRequest(BaseModel):
    team_id: str
    include_workers: bool = True
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.scheduled_start and self.scheduled_end and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self


class ShiftResponse(BaseModel):
    id: str
    booking_id: str
    user_id: Optional[str] = None
    worker_profile_id: Optional[str] = None
    role: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    status: ShiftStatus = "scheduled"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ShiftDetailResponse(ShiftResponse):
    assignee_type: Literal["member", "worker"]
    assignee_name: str
    assignee_email: Optional[str] = None
    scheduled_hours: float = 0.0
    actual_hours: float = 0.0


class BulkAssignResponse(BaseModel):
    created: int
    skipped: int
    shifts: List[ShiftResponse]
    message: str
