from fastapi import APIRouter, Depends
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.shifts.schemas import (
    ShiftCreate, BulkAssignRequest, ShiftResponse, ShiftDetailResponse, BulkAssignResponse
)
from cateringhub.modules.shifts.service import ShiftsService
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import List

router = APIRouter(prefix="/providers/{provider_id}", tags=["shifts"])


def get_shifts_service(supabase: Client = Depends(get_supabase)) -> ShiftsService:
    return ShiftsService(supabase)


@router.get("/bookings/{booking_id}/shifts", response_model=List[ShiftDetailResponse])
async def list_shifts(
    provider_id: str,
    booking_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    """Shifts assigned to a booking"""
    return service.list_shifts(provider_id, booking_id)


@router.post("/bookings/{booking_id}/shifts", response_model=ShiftResponse, status_code=201)
async def create_shift(
    provider_id: str,
    booking_id: str,
    shift_data: ShiftCreate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    """Assign a team member or worker to a booking (supervisor and above)"""
    return service.create_shift(membership, booking_id, shift_data)


@router.post("/bookings/{booking_id}/shifts/bulk", response_model=BulkAssignResponse, status_code=201)
async def bulk_assign_team(
    provider_id: str,
    booking_id: str,
    request: BulkAssignRequest,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    """Assign every active member of a team, skipping people already on the booking"""
    return service.bulk_assign_team(membership, booking_id, request)


@router.post("/shifts/{shift_id}/check-in", response_model=ShiftResponse)
async def check_in(
    provider_id: str,
    shift_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    return service.check_in(membership, shift_id)


@router.post("/shifts/{shift_id}/check-out", response_model=ShiftResponse)
async def check_out(
    provider_id: str,
    shift_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    return service.check_out(membership, shift_id)


@router.delete("/shifts/{shift_id}", status_code=204)
async def delete_shift(
    provider_id: str,
    shift_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: ShiftsService = Depends(get_shifts_service)
):
    """Remove a shift that has not been checked in (supervisor and above)"""
    service.delete_shift(membership, shift_id)
    return None
