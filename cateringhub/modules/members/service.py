from supabase import Client
from cateringhub.config.roles_config import ROLE_HIERARCHY, has_higher_role, normalize_role
from cateringhub.core.audit import record_audit_log
from cateringhub.core.errors import forbidden, internal, invalid_input, not_found
from cateringhub.core.membership import ProviderMembership, ensure_capability
from cateringhub.modules.members.schemas import (
    MemberResponse, MemberListResponse, MemberChangeResponse, MemberRemovedResponse
)
from typing import Any, Dict, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


def get_user_display(supabase: Client, user_id: str) -> Dict[str, Any]:
    """Display name, email and avatar for a user via get_user_metadata.

    full_name falls back to the e-mail local part, then to "Unknown User".
    Lookup failures degrade to the fallback instead of failing the request.
    """
    try:
        result = supabase.rpc("get_user_metadata", {"user_id": user_id}).execute()
        rows = result.data or []
        row = rows[0] if isinstance(rows, list) and rows else rows
    except Exception as e:
        logger.warning(f"get_user_metadata failed for {user_id}: {e}")
        row = None

    if not row:
        return {"full_name": UNKNOWN_USER, "email": "", "avatar_url": None}

    metadata = row.get("raw_user_meta_data") or {}
    email = row.get("email") or ""
    full_name = metadata.get("full_name") or (email.split("@")[0] if email else "") or UNKNOWN_USER
    return {"full_name": full_name, "email": email, "avatar_url": metadata.get("avatar_url")}


class MembersService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _to_response(self, row: Dict[str, Any]) -> MemberResponse:
        display = get_user_display(self.supabase, row["user_id"])
        return MemberResponse(**{**row, "role": normalize_role(row.get("role")) or row.get("role"), **display})

    def get_member_row(self, provider_id: str, member_id: str) -> Dict[str, Any]:
        result = self.supabase.table("provider_members")\
            .select("*")\
            .eq("id", member_id)\
            .eq("provider_id", provider_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise not_found("Member")
        return result.data

    def _check_can_manage(
        self, membership: ProviderMembership, target: Dict[str, Any], action: str, self_message: str
    ):
        """Hierarchy rules shared by status changes and removal, whatever the target's current status"""
        target_role = normalize_role(target.get("role"))
        if target["user_id"] == membership.user_id and membership.role == "owner":
            raise invalid_input(self_message)
        if target_role == "owner" and membership.role != "owner":
            raise forbidden(f"Only owners can {action} other owners")
        if membership.role != "owner" and not has_higher_role(membership.role, target_role):
            raise forbidden(f"You cannot {action} members with equal or higher roles")

    def list_members(self, provider_id: str) -> MemberListResponse:
        """All members of a provider with display metadata, newest first"""
        try:
            result = self.supabase.table("provider_members")\
                .select("*")\
                .eq("provider_id", provider_id)\
                .order("created_at", desc=True)\
                .execute()
            members = [self._to_response(row) for row in (result.data or [])]
            return MemberListResponse(data=members, total=len(members))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing members for provider {provider_id}: {e}")
            raise internal("Failed to fetch team members")

    def assign_team(
        self, membership: ProviderMembership, member_id: str, team_id: Optional[str]
    ) -> MemberChangeResponse:
        """Move a member into a team, or clear their team with team_id=None"""
        ensure_capability(membership, "can_manage_teams", "You do not have permission to assign team members")
        try:
            target = self.get_member_row(membership.provider_id, member_id)

            if team_id:
                team_result = self.supabase.table("teams")\
                    .select("id, status")\
                    .eq("id", team_id)\
                    .eq("provider_id", membership.provider_id)\
                    .maybe_single()\
                    .execute()
                if not team_result or not team_result.data:
                    raise not_found("Team")
                if team_result.data.get("status") != "active":
                    raise invalid_input("Cannot assign members to an inactive or archived team")

            if target.get("team_id") == team_id:
                message = (
                    "Member is already assigned to this team" if team_id
                    else "Member is already not assigned to any team"
                )
                return MemberChangeResponse(data=self._to_response(target), message=message)

            result = self.supabase.table("provider_members")\
                .update({"team_id": team_id, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", member_id)\
                .execute()
            if not result.data:
                raise internal("Failed to update member team assignment")

            record_audit_log(
                self.supabase, membership.provider_id, membership.user_id,
                "member_team_updated", "member", member_id,
                {
                    "target_user_id": target["user_id"],
                    "previous_team_id": target.get("team_id"),
                    "new_team_id": team_id,
                },
            )
            logger.info(f"Member {member_id} team changed {target.get('team_id')} -> {team_id}")
            message = "Member assigned to team successfully" if team_id else "Member removed from team successfully"
            return MemberChangeResponse(data=self._to_response(result.data[0]), message=message)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error assigning member {member_id} to team {team_id}: {e}")
            raise internal("Failed to update member team assignment")

    def update_role(self, membership: ProviderMembership, member_id: str, role: str) -> MemberChangeResponse:
        ensure_capability(membership, "can_manage_roles", "You do not have permission to update member roles")
        new_role = normalize_role(role)
        if new_role is None:
            raise invalid_input(f"Invalid role. Must be one of: {', '.join(ROLE_HIERARCHY)}")
        try:
            target = self.get_member_row(membership.provider_id, member_id)
            current_role = normalize_role(target.get("role"))

            if current_role == "owner":
                raise invalid_input("Cannot change the role of an owner")
            if new_role == "owner" and membership.role != "owner":
                raise forbidden("Only owners can assign the owner role")
            if target["user_id"] == membership.user_id:
                raise invalid_input("You cannot change your own role")

            if current_role == new_role:
                return MemberChangeResponse(
                    data=self._to_response(target),
                    message=f"Member already has the {new_role} role",
                )

            result = self.supabase.table("provider_members")\
                .update({"role": new_role, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", member_id)\
                .execute()
            if not result.data:
                raise internal("Failed to update member role")

            record_audit_log(
                self.supabase, membership.provider_id, membership.user_id,
                "member_role_updated", "member", member_id,
                {"target_user_id": target["user_id"], "previous_role": current_role, "new_role": new_role},
            )
            logger.info(f"Member {member_id} role changed {current_role} -> {new_role}")
            return MemberChangeResponse(
                data=self._to_response(result.data[0]),
                message=f"Member role updated to {new_role} successfully",
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating role of member {member_id}: {e}")
            raise internal("Failed to update member role")

    def update_status(self, membership: ProviderMembership, member_id: str, status: str) -> MemberChangeResponse:
        ensure_capability(membership, "can_remove_members", "You do not have permission to update member status")
        try:
            target = self.get_member_row(membership.provider_id, member_id)
            self._check_can_manage(
                membership, target, "change the status of", "Owners cannot change their own status"
            )

            if target.get("status") == status:
                return MemberChangeResponse(data=self._to_response(target), message=f"Member is already {status}")

            result = self.supabase.table("provider_members")\
                .update({"status": status, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", member_id)\
                .execute()
            if not result.data:
                raise internal("Failed to update member status")

            record_audit_log(
                self.supabase, membership.provider_id, membership.user_id,
                "member_status_updated", "member", member_id,
                {"target_user_id": target["user_id"], "previous_status": target.get("status"), "new_status": status},
            )
            logger.info(f"Member {member_id} status changed {target.get('status')} -> {status}")
            verb = "suspended" if status == "suspended" else "activated"
            return MemberChangeResponse(data=self._to_response(result.data[0]), message=f"Member {verb} successfully")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating status of member {member_id}: {e}")
            raise internal("Failed to update member status")

    def remove_member(self, membership: ProviderMembership, member_id: str) -> MemberRemovedResponse:
        """Take a member out of the organization.

        The row is kept for the audit trail: the member is suspended and
        unassigned from their team. The last active owner cannot be removed.
        """
        ensure_capability(membership, "can_remove_members", "You do not have permission to remove members")
        try:
            target = self.get_member_row(membership.provider_id, member_id)
            self._check_can_manage(membership, target, "remove", "Owners cannot remove themselves")

            if normalize_role(target.get("role")) == "owner" and target.get("status") == "active":
                owners = self.supabase.table("provider_members")\
                    .select("id", count="exact")\
                    .eq("provider_id", membership.provider_id)\
                    .eq("role", "owner")\
                    .eq("status", "active")\
                    .execute()
                if (owners.count or 0) <= 1:
                    raise invalid_input("Cannot remove the last owner. Please transfer ownership first.")

            result = self.supabase.table("provider_members")\
                .update({
                    "status": "suspended",
                    "team_id": None,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("id", member_id)\
                .execute()
            if not result.data:
                raise internal("Failed to remove member")

            record_audit_log(
                self.supabase, membership.provider_id, membership.user_id,
                "member_removed", "member", member_id,
                {
                    "target_user_id": target["user_id"],
                    "role": normalize_role(target.get("role")),
                    "previous_team_id": target.get("team_id"),
                },
            )
            logger.info(f"Member {member_id} removed from provider {membership.provider_id}")
            return MemberRemovedResponse(removed_member_id=member_id, message="Member removed successfully")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error removing member {member_id}: {e}")
            raise internal("Failed to remove member")
