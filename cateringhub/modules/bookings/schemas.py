from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator, model_validator
from typing import Any, Dict, Literal, Optional, List
from datetime import date, datetime, time

BookingStatus = Literal["pending", "confirmed", "in_progress", "completed", "cancelled"]
BookingSource = Literal["manual", "auto"]
SortField = Literal["event_date", "created_at", "customer_name", "status", "guest_count"]

OPEN_STATUSES = ("pending", "confirmed", "in_progress")


class BookingResponse(BaseModel):
    id: str
    provider_id: str
    customer_id: Optional[str] = None
    service_location_id: Optional[str] = None
    team_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    event_date: date
    event_time: Optional[time] = None
    event_type: Optional[str] = None
    guest_count: Optional[int] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    estimated_budget: Optional[float] = None
    base_price: Optional[float] = None
    total_price: Optional[float] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus
    source: Optional[BookingSource] = None
    created_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingFilters(BaseModel):
    search: Optional[str] = None
    status: Optional[BookingStatus] = None
    source: Optional[BookingSource] = None
    team: Optional[str] = None  # team id, or "no-team"
    my_team: bool = False
    sort_by: SortField = "event_date"
    sort_order: Literal["asc", "desc"] = "asc"


class Pagination(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class BookingListCapabilities(BaseModel):
    can_view_all_bookings: bool
    can_edit_bookings: bool
    can_assign_bookings: bool


class BookingListResponse(BaseModel):
    data: List[BookingResponse]
    pagination: Pagination
    filters: BookingFilters
    user_role: str
    capabilities: BookingListCapabilities


class ShiftAggregates(BaseModel):
    total_shifts: int = 0
    scheduled_shifts: int = 0
    checked_in_shifts: int = 0
    completed_shifts: int = 0
    estimated_hours: float = 0.0
    actual_hours: float = 0.0


class ProviderConstraints(BaseModel):
    advance_booking_days: Optional[int] = None
    max_service_radius: Optional[float] = None
    daily_capacity: Optional[int] = None
    available_days: Optional[List[str]] = None


class BookingDetailCapabilities(BaseModel):
    can_edit: bool
    can_assign: bool
    can_manage_billing: bool
    can_reassign: bool
    can_edit_logistics: bool


class BookingDetailResponse(BaseModel):
    booking: BookingResponse
    team: Optional[Dict[str, Any]] = None
    shift_aggregates: ShiftAggregates
    estimated_labor_cost: float
    formatted_labor_cost: str
    formatted_total_price: str
    provider_constraints: ProviderConstraints
    constraint_violations: List[Dict[str, str]]
    related_bookings_count: int
    status_timeline: List[Dict[str, Any]]
    countdown: Dict[str, Any]
    capabilities: BookingDetailCapabilities


class BookingUpdate(BaseModel):
    status: Optional[BookingStatus] = None
    event_date: Optional[date] = None
    event_time: Optional[time] = None
    event_type: Optional[str] = None
    guest_count: Optional[int] = Field(None, gt=0)
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    service_location_id: Optional[str] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    total_price: Optional[float] = Field(None, ge=0)

    @field_validator("status", "event_date")
    @classmethod
    def reject_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ManualBookingCreate(BaseModel):
    customer_name: str
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    event_date: date
    event_time: Optional[time] = None
    event_type: Optional[str] = None
    guest_count: Optional[int] = Field(None, gt=0)
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    service_location_id: Optional[str] = None
    team_id: Optional[str] = None
    estimated_budget: Optional[float] = Field(None, ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus = "pending"

    @field_validator("customer_name")
    @classmethod
    def strip_customer_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Customer name is required")
        return v

    @field_validator(
        "customer_email", "customer_phone", "event_type", "venue_name", "venue_address",
        "service_location_id", "team_id", "special_requests", "notes",
        "event_time", "guest_count", "estimated_budget", "base_price",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_event_date(self):
        if self.status in OPEN_STATUSES and self.event_date < date.today():
            raise ValueError("Event date cannot be in the past for pending, confirmed or in-progress bookings")
        return self


class ManualBookingResponse(BaseModel):
    id: str
    status: BookingStatus
    event_date: date
    source: Optional[str] = "manual"
    base_price: Optional[float] = None
    total_price: Optional[float] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


class BookingTeamUpdate(BaseModel):
    team_id: Optional[str] = None


class BookingTeamResponse(BaseModel):
    booking: BookingResponse
    message: str
    shifts_created: int = 0
    shifts_skipped: int = 0
