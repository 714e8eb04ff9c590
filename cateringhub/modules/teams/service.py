from supabase import Client
from cateringhub.core.errors import (
    conflict, internal, invalid_input, is_unique_violation, not_found
)
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.members.service import get_user_display
from cateringhub.modules.teams.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamDetailResponse,
    TeamMemberEntry, TeamMemberCounts, TeamMembersResponse,
    TeamCapacityResponse, ServiceLocationSummary
)
from typing import Any, Dict, List, Optional, Union
from fastapi import HTTPException
from datetime import date, datetime, timezone
import logging

logger = logging.getLogger(__name__)


def fetch_team_capacity(supabase: Client, team_id: str, event_date: Union[date, str]) -> TeamCapacityResponse:
    """Call get_team_capacity_info for one team and date.

    A team is at capacity when remaining_capacity is known and <= 0; a NULL
    daily_capacity means unlimited.
    """
    event_date_str = event_date.isoformat() if isinstance(event_date, date) else str(event_date)
    result = supabase.rpc("get_team_capacity_info", {
        "p_team_id": team_id,
        "p_event_date": event_date_str,
    }).execute()
    rows = result.data or []
    row = rows[0] if isinstance(rows, list) and rows else rows
    if not row:
        raise not_found("Team")

    remaining = row.get("remaining_capacity")
    return TeamCapacityResponse(
        team_id=row.get("team_id") or team_id,
        team_name=row.get("team_name"),
        event_date=event_date_str,
        daily_capacity=row.get("daily_capacity"),
        max_concurrent_events=row.get("max_concurrent_events"),
        bookings_on_date=row.get("bookings_on_date") or 0,
        remaining_capacity=remaining,
        is_at_capacity=remaining is not None and remaining <= 0,
    )


class TeamsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_team_row(self, provider_id: str, team_id: str) -> Dict[str, Any]:
        result = self.supabase.table("teams")\
            .select("*")\
            .eq("id", team_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Team")
        return result.data

    def get_active_team(self, provider_id: str, team_id: str) -> Dict[str, Any]:
        team = self.get_team_row(provider_id, team_id)
        if team.get("status") != "active":
            raise invalid_input("Team is not active")
        return team

    def _count_active_members(self, team_id: str) -> int:
        result = self.supabase.table("provider_members")\
            .select("id", count="exact")\
            .eq("team_id", team_id)\
            .eq("status", "active")\
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def _locations_by_id(self, location_ids: List[str]) -> Dict[str, ServiceLocationSummary]:
        if not location_ids:
            return {}
        result = self.supabase.table("service_locations")\
            .select("id, province, city, barangay, is_primary")\
            .in_("id", location_ids)\
            .execute()
        return {row["id"]: ServiceLocationSummary(**row) for row in (result.data or [])}

    def _to_response(self, team: Dict[str, Any], locations: Dict[str, ServiceLocationSummary]) -> TeamResponse:
        return TeamResponse(
            **team,
            member_count=self._count_active_members(team["id"]),
            service_location=locations.get(team.get("service_location_id")),
        )

    def list_teams(
        self,
        provider_id: str,
        status: Optional[str] = None,
        service_location_id: Optional[str] = None
    ) -> List[TeamResponse]:
        """List teams of a provider with their location and active member count"""
        try:
            query = self.supabase.table("teams")\
                .select("*")\
                .eq("provider_id", provider_id)
            if status:
                query = query.eq("status", status)
            if service_location_id:
                query = query.eq("service_location_id", service_location_id)
            result = query.order("created_at", desc=True).execute()
            teams = result.data or []
            locations = self._locations_by_id(
                list({t["service_location_id"] for t in teams if t.get("service_location_id")})
            )
            return [self._to_response(team, locations) for team in teams]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing teams for provider {provider_id}: {e}")
            raise internal("Failed to fetch teams")

    def create_team(self, membership: ProviderMembership, team_data: TeamCreate) -> TeamResponse:
        """Create a team at one of the provider's service locations and install its supervisor"""
        ensure_capability(membership, "can_create_teams", "Only admins and owners can create teams")
        provider_id = membership.provider_id
        try:
            location_result = self.supabase.table("service_locations")\
                .select("id, provider_id")\
                .eq("id", team_data.service_location_id)\
                .eq("provider_id", provider_id)\
                .maybe_single()\
                .execute()
            if not location_result or not location_result.data:
                raise invalid_input("Invalid service location")

            supervisor_result = self.supabase.table("provider_members")\
                .select("id, role, status, user_id")\
                .eq("id", team_data.supervisor_member_id)\
                .eq("provider_id", provider_id)\
                .maybe_single()\
                .execute()
            if not supervisor_result or not supervisor_result.data:
                raise invalid_input("Invalid supervisor member")
            supervisor = supervisor_result.data
            if supervisor.get("status") != "active":
                raise invalid_input("Supervisor must be an active member")
            if supervisor.get("role") not in ("staff", "supervisor", "manager"):
                raise invalid_input("Supervisor must be selected from staff or existing supervisor")

            try:
                result = self.supabase.table("teams").insert({
                    "provider_id": provider_id,
                    "service_location_id": team_data.service_location_id,
                    "name": team_data.name,
                    "description": team_data.description,
                    "daily_capacity": team_data.daily_capacity,
                    "max_concurrent_events": team_data.max_concurrent_events,
                    "status": "active",
                }).execute()
            except Exception as e:
                if is_unique_violation(e):
                    raise conflict("A team with this name already exists at this location")
                raise

            if not result.data:
                raise internal("Failed to create team")
            team = result.data[0]

            try:
                promoted = self.supabase.table("provider_members")\
                    .update({"role": "supervisor", "team_id": team["id"]})\
                    .eq("id", supervisor["id"])\
                    .eq("provider_id", provider_id)\
                    .execute()
            except Exception as e:
                logger.error(f"Error promoting supervisor {supervisor['id']} of team {team['id']}: {e}")
                promoted = None
            if not promoted or not promoted.data:
                self._discard_team(team["id"])
                raise internal("Failed to assign supervisor to team")

            logger.info(f"Team {team['id']} created for provider {provider_id} with supervisor {supervisor['id']}")
            locations = self._locations_by_id([team_data.service_location_id])
            return self._to_response(team, locations)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating team for provider {provider_id}: {e}")
            raise internal("Failed to create team")

    def _discard_team(self, team_id: str):
        try:
            self.supabase.table("teams").delete().eq("id", team_id).execute()
        except Exception as e:
            logger.error(f"Could not remove team {team_id} after a failed supervisor assignment: {e}")

    def get_team(self, provider_id: str, team_id: str) -> TeamDetailResponse:
        """Team with its active members and their display names"""
        try:
            team = self.get_team_row(provider_id, team_id)
            members_result = self.supabase.table("provider_members")\
                .select("id, user_id, role, status")\
                .eq("team_id", team_id)\
                .eq("status", "active")\
                .execute()
            members = []
            for member in members_result.data or []:
                members.append({**member, **get_user_display(self.supabase, member["user_id"])})
            locations = self._locations_by_id([team["service_location_id"]] if team.get("service_location_id") else [])
            return TeamDetailResponse(
                **team,
                member_count=len(members),
                service_location=locations.get(team.get("service_location_id")),
                members=members,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching team {team_id}: {e}")
            raise internal("Failed to fetch team")

    def update_team(self, membership: ProviderMembership, team_id: str, team_data: TeamUpdate) -> TeamResponse:
        ensure_capability(membership, "can_manage_teams", "You do not have permission to update teams")
        try:
            self.get_team_row(membership.provider_id, team_id)
            update_data = team_data.model_dump(exclude_unset=True)
            if "name" in update_data:
                name = (update_data["name"] or "").strip()
                if not name:
                    raise invalid_input("Team name cannot be empty")
                update_data["name"] = name
            if not update_data:
                raise invalid_input("No fields to update")
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            try:
                result = self.supabase.table("teams")\
                    .update(update_data)\
                    .eq("id", team_id)\
                    .eq("provider_id", membership.provider_id)\
                    .execute()
            except Exception as e:
                if is_unique_violation(e):
                    raise conflict("A team with this name already exists at this location")
                raise
            if not result.data:
                raise not_found("Team")

            logger.info(f"Team {team_id} updated: {sorted(update_data)}")
            team = result.data[0]
            locations = self._locations_by_id([team["service_location_id"]] if team.get("service_location_id") else [])
            return self._to_response(team, locations)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating team {team_id}: {e}")
            raise internal("Failed to update team")

    def archive_team(self, membership: ProviderMembership, team_id: str) -> TeamResponse:
        """Soft delete: teams are archived, never removed, so past bookings keep their team"""
        return self.update_team(membership, team_id, TeamUpdate(status="archived"))

    def list_team_members(self, provider_id: str, team_id: str) -> TeamMembersResponse:
        """Staff accounts and non-login workers of a team in one list"""
        try:
            team = self.get_team_row(provider_id, team_id)

            staff_result = self.supabase.table("provider_members")\
                .select("id, user_id, role, status")\
                .eq("team_id", team_id)\
                .eq("provider_id", provider_id)\
                .execute()
            staff = []
            for member in staff_result.data or []:
                display = get_user_display(self.supabase, member["user_id"])
                staff.append(TeamMemberEntry(
                    id=member["id"],
                    name=display["full_name"],
                    role=member.get("role"),
                    status=member.get("status"),
                    member_type="staff",
                    email=display["email"] or None,
                ))

            workers_result = self.supabase.table("worker_profiles")\
                .select("id, name, role, status, phone, hourly_rate, tags")\
                .eq("team_id", team_id)\
                .eq("provider_id", provider_id)\
                .execute()
            workers = [
                TeamMemberEntry(
                    id=worker["id"],
                    name=worker["name"],
                    role=worker.get("role"),
                    status=worker.get("status"),
                    member_type="worker",
                    phone=worker.get("phone"),
                    hourly_rate=worker.get("hourly_rate"),
                    tags=worker.get("tags") or [],
                )
                for worker in (workers_result.data or [])
            ]

            return TeamMembersResponse(
                team_id=team["id"],
                team_name=team["name"],
                members=staff + workers,
                counts=TeamMemberCounts(total=len(staff) + len(workers), staff=len(staff), workers=len(workers)),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing members of team {team_id}: {e}")
            raise internal("Failed to fetch team members")

    def get_capacity(self, provider_id: str, team_id: str, event_date: date) -> TeamCapacityResponse:
        try:
            self.get_team_row(provider_id, team_id)
            return fetch_team_capacity(self.supabase, team_id, event_date)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking capacity of team {team_id} on {event_date}: {e}")
            raise internal("Failed to check team capacity")
