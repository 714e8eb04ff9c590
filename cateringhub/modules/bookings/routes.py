from fastapi import APIRouter, Depends, Query
from cateringhub.config import settings
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.bookings.schemas import (
    BookingFilters, BookingListResponse, BookingDetailResponse, BookingResponse,
    BookingUpdate, ManualBookingCreate, ManualBookingResponse,
    BookingTeamUpdate, BookingTeamResponse, BookingStatus, BookingSource, SortField
)
from cateringhub.modules.bookings.service import BookingsService
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import Literal, Optional

router = APIRouter(prefix="/providers/{provider_id}/bookings", tags=["bookings"])


def get_bookings_service(supabase: Client = Depends(get_supabase)) -> BookingsService:
    return BookingsService(supabase)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    provider_id: str,
    search: Optional[str] = None,
    status: Optional[BookingStatus] = None,
    source: Optional[BookingSource] = None,
    team: Optional[str] = None,
    my_team: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1),
    sort_by: SortField = "event_date",
    sort_order: Literal["asc", "desc"] = "asc",
    membership: ProviderMembership = Depends(get_current_membership),
    service: BookingsService = Depends(get_bookings_service)
):
    """List bookings. Members without can_view_all_bookings only see their team's."""
    filters = BookingFilters(
        search=search, status=status, source=source, team=team,
        my_team=my_team, sort_by=sort_by, sort_order=sort_order,
    )
    return service.list_bookings(membership, filters, page=page, page_size=page_size)


@router.post("", response_model=ManualBookingResponse, status_code=201)
async def create_manual_booking(
    provider_id: str,
    booking_data: ManualBookingCreate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: BookingsService = Depends(get_bookings_service)
):
    """Enter a booking taken outside the marketplace (phone, walk-in)"""
    return service.create_manual_booking(membership, booking_data)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    provider_id: str,
    booking_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: BookingsService = Depends(get_bookings_service)
):
    return service.get_booking_detail(membership, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    provider_id: str,
    booking_id: str,
    patch: BookingUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: BookingsService = Depends(get_bookings_service)
):
    """Update booking logistics or status"""
    return service.update_booking(membership, booking_id, patch)


@router.patch("/{booking_id}/team", response_model=BookingTeamResponse)
async def assign_booking_team(
    provider_id: str,
    booking_id: str,
    body: BookingTeamUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: BookingsService = Depends(get_bookings_service)
):
    """Assign a team (checked against its daily capacity) or clear it with team_id=null"""
    return service.assign_team(membership, booking_id, body.team_id)
