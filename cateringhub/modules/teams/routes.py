from fastapi import APIRouter, Depends, Query
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.teams.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamDetailResponse,
    TeamMembersResponse, TeamCapacityResponse, TeamStatus
)
from cateringhub.modules.teams.service import TeamsService
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import List, Optional
from datetime import date

router = APIRouter(prefix="/providers/{provider_id}/teams", tags=["teams"])


def get_teams_service(supabase: Client = Depends(get_supabase)) -> TeamsService:
    return TeamsService(supabase)


@router.get("", response_model=List[TeamResponse])
async def list_teams(
    provider_id: str,
    status: Optional[TeamStatus] = None,
    service_location_id: Optional[str] = None,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """List teams, optionally filtered by status or service location"""
    return service.list_teams(provider_id, status=status, service_location_id=service_location_id)


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    provider_id: str,
    team_data: TeamCreate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """Create a team (owner/admin)"""
    return service.create_team(membership, team_data)


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(
    provider_id: str,
    team_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    return service.get_team(provider_id, team_id)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    provider_id: str,
    team_id: str,
    team_data: TeamUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """Update team details, capacity or status (supervisor and above)"""
    return service.update_team(membership, team_id, team_data)


@router.delete("/{team_id}", response_model=TeamResponse)
async def archive_team(
    provider_id: str,
    team_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """Archive a team (supervisor and above)"""
    return service.archive_team(membership, team_id)


@router.get("/{team_id}/members", response_model=TeamMembersResponse)
async def list_team_members(
    provider_id: str,
    team_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """Staff and worker profiles assigned to a team"""
    return service.list_team_members(provider_id, team_id)


@router.get("/{team_id}/capacity", response_model=TeamCapacityResponse)
async def get_team_capacity(
    provider_id: str,
    team_id: str,
    event_date: date = Query(...),
    membership: ProviderMembership = Depends(get_current_membership),
    service: TeamsService = Depends(get_teams_service)
):
    """Bookings already on the date and remaining daily capacity"""
    return service.get_capacity(provider_id, team_id, event_date)
