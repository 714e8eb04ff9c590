from fastapi import APIRouter, Depends
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.members.schemas import (
    MemberListResponse, MemberChangeResponse, MemberRemovedResponse,
    MemberTeamUpdate, MemberRoleUpdate, MemberStatusUpdate
)
from cateringhub.modules.members.service import MembersService
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client

router = APIRouter(prefix="/providers/{provider_id}/members", tags=["members"])


def get_members_service(supabase: Client = Depends(get_supabase)) -> MembersService:
    return MembersService(supabase)


@router.get("", response_model=MemberListResponse)
async def list_members(
    provider_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: MembersService = Depends(get_members_service)
):
    """List provider members (any active member)"""
    return service.list_members(provider_id)


@router.patch("/{member_id}/team", response_model=MemberChangeResponse)
async def assign_member_team(
    provider_id: str,
    member_id: str,
    body: MemberTeamUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: MembersService = Depends(get_members_service)
):
    """Assign a member to a team, or remove them from their team with team_id=null"""
    return service.assign_team(membership, member_id, body.team_id)


@router.patch("/{member_id}/role", response_model=MemberChangeResponse)
async def update_member_role(
    provider_id: str,
    member_id: str,
    body: MemberRoleUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: MembersService = Depends(get_members_service)
):
    """Change a member's role (owner/admin)"""
    return service.update_role(membership, member_id, body.role)


@router.patch("/{member_id}/status", response_model=MemberChangeResponse)
async def update_member_status(
    provider_id: str,
    member_id: str,
    body: MemberStatusUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: MembersService = Depends(get_members_service)
):
    """Suspend or re-activate a member (owner/admin)"""
    return service.update_status(membership, member_id, body.status)


@router.delete("/{member_id}", response_model=MemberRemovedResponse)
async def remove_member(
    provider_id: str,
    member_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: MembersService = Depends(get_members_service)
):
    """Remove a member from the organization (owner/admin)"""
    return service.remove_member(membership, member_id)
